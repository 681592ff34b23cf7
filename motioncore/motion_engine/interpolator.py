"""
Keyframe interpolation.

sample() is a pure function of (track, time). It selects a bracket (with
range-hold handling), applies the left keyframe's easing, and dispatches on
the value variant: positions follow a straight line or a cubic Bezier,
scalars and custom vectors are lerped component-wise.

Values stay in their stored units (degrees, hundredths); the engine converts
them when writing transforms.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..schemas.keyframe import BezierPath, Keyframe, PropertyTrack
from .easing import apply_easing
from .errors import MixedVariantError, SparseTrackError
from .keyframe_store import find_bracket

Vec2 = Tuple[float, float]


@dataclass(frozen=True)
class SampledValue:
    """A sampled property value with float components."""

    kind: str
    components: Tuple[float, ...]

    @classmethod
    def from_key_value(cls, value) -> "SampledValue":
        return cls(kind=value.type, components=value.components())

    @property
    def x(self) -> float:
        return self.components[0]

    @property
    def y(self) -> float:
        return self.components[1]

    @property
    def scalar(self) -> float:
        return self.components[0]

    def as_point(self) -> Vec2:
        return (self.components[0], self.components[1])


# =============================================================================
# Geometry Helpers
# =============================================================================


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def cubic_bezier(p0: Vec2, p1: Vec2, p2: Vec2, p3: Vec2, t: float) -> Vec2:
    """Evaluate a cubic Bezier curve at parameter t."""
    mt = 1.0 - t
    a = mt * mt * mt
    b = 3.0 * mt * mt * t
    c = 3.0 * mt * t * t
    d = t * t * t
    return (
        a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
        a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1],
    )


def bezier_controls(path: BezierPath, p0: Vec2, p3: Vec2) -> Tuple[Vec2, Vec2]:
    """Resolve control points, defaulting to the thirds of the straight segment."""
    dx = p3[0] - p0[0]
    dy = p3[1] - p0[1]
    if path.control_point1 is not None:
        c1 = (float(path.control_point1.x), float(path.control_point1.y))
    else:
        c1 = (p0[0] + dx / 3.0, p0[1] + dy / 3.0)
    if path.control_point2 is not None:
        c2 = (float(path.control_point2.x), float(path.control_point2.y))
    else:
        c2 = (p0[0] + dx * 2.0 / 3.0, p0[1] + dy * 2.0 / 3.0)
    return c1, c2


# =============================================================================
# Segment Interpolation
# =============================================================================


def interpolate(left: Keyframe, right: Keyframe, t: float) -> SampledValue:
    """
    Interpolate between two keyframes of the same variant.

    The left keyframe's easing and path govern the segment.

    Raises:
        MixedVariantError: If the keyframes hold different variants
    """
    kind = left.value.type
    if right.value.type != kind:
        raise MixedVariantError(
            f"Cannot interpolate {kind} at {left.time}ms into {right.value.type} at {right.time}ms"
        )

    start = left.value.components()
    end = right.value.components()
    if len(start) != len(end):
        raise MixedVariantError(
            f"Component count differs between {left.time}ms ({len(start)}) "
            f"and {right.time}ms ({len(end)})"
        )

    span = right.time - left.time
    u = (t - left.time) / span if span > 0 else 1.0
    eased = apply_easing(left.easing, u)

    if kind == "position" and isinstance(left.path, BezierPath):
        p0 = (start[0], start[1])
        p3 = (end[0], end[1])
        c1, c2 = bezier_controls(left.path, p0, p3)
        return SampledValue(kind=kind, components=cubic_bezier(p0, c1, c2, p3, eased))

    return SampledValue(
        kind=kind,
        components=tuple(lerp(a, b, eased) for a, b in zip(start, end)),
    )


def sample(track: PropertyTrack, t: float, limit_ms: Optional[int] = None) -> SampledValue:
    """
    Sample a track at time t.

    Args:
        track: Property track (any order; sorted on the fly)
        t: Time in milliseconds, local to the animation
        limit_ms: Keyframes later than this are ignored

    Returns:
        SampledValue with float components

    Raises:
        SparseTrackError: If fewer than two keyframes are usable
        MixedVariantError: If the bracket mixes value variants
    """
    keyframes: Sequence[Keyframe] = track.sorted_keyframes()
    if limit_ms is not None:
        keyframes = [k for k in keyframes if k.time <= limit_ms]
    if len(keyframes) < 2:
        raise SparseTrackError(
            f"Track '{track.property_path}' has {len(keyframes)} usable keyframe(s), need 2"
        )

    bracket = find_bracket(track, t, limit_ms=limit_ms)
    if bracket is None:
        edge = keyframes[0] if t < keyframes[0].time else keyframes[-1]
        return SampledValue.from_key_value(edge.value)

    if bracket.hold:
        return SampledValue.from_key_value(bracket.left.value)

    return interpolate(bracket.left, bracket.right, t)
