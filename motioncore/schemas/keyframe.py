"""
Pydantic schemas for keyframes and property tracks.

Keyframe values are stored as integers so equality and hashing are total:
positions in canvas pixels, rotation in whole degrees, and scale, opacity and
zoom in hundredths (100 == 1.0). Conversion to floats happens at sample time.

Example usage:
    from motioncore.schemas.keyframe import Keyframe, PositionValue, RangeKind

    hold = Keyframe(
        time=1000,
        value=PositionValue(value=(100, 0)),
        kind=RangeKind(end_time=3000),
    )
"""

import uuid
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Geometry
# =============================================================================


class Point(BaseModel):
    """Integer point in logical canvas space (origin top-left, +y down)."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int


# =============================================================================
# Keyframe Values (Discriminated Union)
# =============================================================================


class _ScalarValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: int

    def components(self) -> Tuple[float, ...]:
        return (float(self.value),)


class PositionValue(BaseModel):
    """Position in canvas pixels."""

    model_config = ConfigDict(frozen=True)

    type: Literal["position"] = "position"
    value: Tuple[int, int] = Field(..., description="(x, y) in canvas pixels")

    def components(self) -> Tuple[float, ...]:
        return (float(self.value[0]), float(self.value[1]))


class RotationValue(_ScalarValue):
    """Rotation in whole degrees."""

    type: Literal["rotation"] = "rotation"


class ScaleValue(_ScalarValue):
    """Scale in hundredths (100 = original size)."""

    type: Literal["scale"] = "scale"


class OpacityValue(_ScalarValue):
    """Opacity in hundredths (100 = fully opaque)."""

    type: Literal["opacity"] = "opacity"


class ZoomValue(_ScalarValue):
    """Video zoom in hundredths (100 = no zoom)."""

    type: Literal["zoom"] = "zoom"


class PerspectiveXValue(_ScalarValue):
    type: Literal["perspective_x"] = "perspective_x"


class PerspectiveYValue(_ScalarValue):
    type: Literal["perspective_y"] = "perspective_y"


class CustomValue(BaseModel):
    """Free-form integer vector."""

    model_config = ConfigDict(frozen=True)

    type: Literal["custom"] = "custom"
    value: Tuple[int, ...] = ()

    def components(self) -> Tuple[float, ...]:
        return tuple(float(v) for v in self.value)


KeyValue = Annotated[
    Union[
        PositionValue,
        RotationValue,
        ScaleValue,
        OpacityValue,
        ZoomValue,
        PerspectiveXValue,
        PerspectiveYValue,
        CustomValue,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# Easing, Path and Kind
# =============================================================================

EasingType = Literal["linear", "ease_in", "ease_out", "ease_in_out"]


class LinearPath(BaseModel):
    """Straight-line motion to the next keyframe."""

    model_config = ConfigDict(frozen=True)

    type: Literal["linear"] = "linear"


class BezierPath(BaseModel):
    """Cubic Bezier motion to the next keyframe.

    Missing control points default to the 1/3 and 2/3 points of the
    straight segment.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["bezier"] = "bezier"
    control_point1: Optional[Point] = None
    control_point2: Optional[Point] = None


PathType = Annotated[Union[LinearPath, BezierPath], Field(discriminator="type")]


class FrameKind(BaseModel):
    """A keyframe anchored at a single instant."""

    model_config = ConfigDict(frozen=True)

    type: Literal["frame"] = "frame"


class RangeKind(BaseModel):
    """A keyframe whose value is held over [time, end_time)."""

    model_config = ConfigDict(frozen=True)

    type: Literal["range"] = "range"
    end_time: int = Field(..., ge=0, description="End of the hold interval (milliseconds)")


KeyKind = Annotated[Union[FrameKind, RangeKind], Field(discriminator="type")]


# =============================================================================
# Keyframe and Track
# =============================================================================


class Keyframe(BaseModel):
    """A time-anchored value in a property track."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Keyframe UUID")
    time: int = Field(..., ge=0, description="Keyframe time in milliseconds")
    value: KeyValue
    easing: EasingType = Field("linear", description="Easing applied towards the next keyframe")
    path: PathType = Field(default_factory=LinearPath, description="Path shape towards the next keyframe")
    kind: KeyKind = Field(default_factory=FrameKind, description="Frame or range-hold keyframe")

    @property
    def is_range(self) -> bool:
        return isinstance(self.kind, RangeKind)

    @property
    def end_time(self) -> Optional[int]:
        """Hold end for range keyframes, None for frames."""
        if isinstance(self.kind, RangeKind):
            return self.kind.end_time
        return None


class PropertyTrack(BaseModel):
    """Keyframes for one animated property of one object."""

    name: str = Field(..., description="Display name (e.g. Position)")
    property_path: str = Field(..., description="Property key (position, rotation, scale, opacity, zoom)")
    keyframes: List[Keyframe] = Field(default_factory=list)
    depth: int = Field(0, ge=0, description="Visual depth in the property tree (UI only)")
    children: List["PropertyTrack"] = Field(default_factory=list, description="Nested tracks (UI grouping)")

    def sorted_keyframes(self) -> List[Keyframe]:
        return sorted(self.keyframes, key=lambda k: k.time)
