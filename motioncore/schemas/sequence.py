"""
Pydantic schemas for sequences and the object configs they hold.

A Sequence owns the object configs (dimensions, initial positions, layers)
and one AnimationData per animated object, linked by object id.
"""

import uuid
from typing import Annotated, Iterator, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

from .animation import AnimationData, ObjectKind


# =============================================================================
# Background
# =============================================================================


class ColorFill(BaseModel):
    """Solid background colour, RGBA 0-255."""

    type: Literal["color"] = "color"
    color: Tuple[int, int, int, int] = Field((255, 255, 255, 255), description="RGBA, 0-255 per channel")

    def as_floats(self) -> Tuple[float, float, float, float]:
        r, g, b, a = self.color
        return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


class GradientFill(BaseModel):
    """Reserved gradient background. Not applied by the engine."""

    type: Literal["gradient"] = "gradient"
    stops: List[Tuple[int, int, int, int]] = Field(default_factory=list)


BackgroundFill = Annotated[Union[ColorFill, GradientFill], Field(discriminator="type")]


# =============================================================================
# Object Configs
# =============================================================================


class ObjectConfig(BaseModel):
    """Fields shared by every placed object."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    dimensions: Tuple[float, float] = Field((100.0, 100.0), description="Width and height in canvas pixels")
    position: Tuple[int, int] = Field((0, 0), description="Initial position in canvas pixels")
    layer: int = Field(0, description="Integer z-layer")


class PolygonConfig(ObjectConfig):
    points: List[Tuple[float, float]] = Field(default_factory=list, description="Normalized outline points")
    fill: Tuple[int, int, int, int] = (0, 0, 0, 255)


class TextItemConfig(ObjectConfig):
    text: str = ""
    font_family: str = "Aleo"
    font_size: int = 28
    color: Tuple[int, int, int, int] = (0, 0, 0, 255)


class ImageItemConfig(ObjectConfig):
    path: str = Field("", description="Image file path")


class VideoItemConfig(ObjectConfig):
    """A placed video.

    Source metadata is carried on the config so the engine can pace frames
    without opening the file.
    """

    path: str = Field("", description="Video file path")
    source_duration_ms: int = Field(..., gt=0, description="Source clip duration in milliseconds")
    source_frame_rate: float = Field(..., gt=0, description="Source frames per second")
    source_dimensions: Tuple[int, int] = Field(..., description="Decoded frame width and height")
    mouse_path: Optional[str] = Field(None, description="Recorded mousePositions.json for follow-zoom")


# =============================================================================
# Sequence
# =============================================================================


class Sequence(BaseModel):
    """A self-contained scene of animated objects."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    background_fill: Optional[BackgroundFill] = None
    duration_ms: int = Field(20_000, gt=0, description="Sequence duration in milliseconds")
    active_polygons: List[PolygonConfig] = Field(default_factory=list)
    polygon_motion_paths: List[AnimationData] = Field(
        default_factory=list,
        description="One AnimationData per animated object (all kinds)",
    )
    active_text_items: List[TextItemConfig] = Field(default_factory=list)
    active_image_items: List[ImageItemConfig] = Field(default_factory=list)
    active_video_items: List[VideoItemConfig] = Field(default_factory=list)

    def iter_configs(self) -> Iterator[Tuple[ObjectKind, ObjectConfig]]:
        """Yield (kind, config) in polygon, text, image, video order."""
        for polygon in self.active_polygons:
            yield "polygon", polygon
        for text in self.active_text_items:
            yield "text", text
        for image in self.active_image_items:
            yield "image", image
        for video in self.active_video_items:
            yield "video", video

    def find_config(self, object_id: str) -> Optional[Tuple[ObjectKind, ObjectConfig]]:
        for kind, config in self.iter_configs():
            if config.id == object_id:
                return kind, config
        return None

    def animation_for(self, object_id: str) -> Optional[AnimationData]:
        for anim in self.polygon_motion_paths:
            if anim.object_id == object_id:
                return anim
        return None
