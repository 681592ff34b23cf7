"""
Exception types raised by the motion engine.

Load-time errors (SequenceValidationError and subclasses, MixedVariantError)
are fatal and reject the sequence. The rest are recovered by the engine,
which logs them once per object per sequence activation.
"""


class AnimationError(Exception):
    """Base class for motion engine errors."""

    pass


class MissingTrackError(AnimationError):
    """Requested property track does not exist on the object."""

    def __init__(self, object_id: str, property_path: str):
        self.object_id = object_id
        self.property_path = property_path
        super().__init__(f"Object {object_id} has no '{property_path}' track")


class SparseTrackError(AnimationError):
    """Track has fewer than two keyframes and cannot be interpolated."""

    pass


class OutOfRangeError(AnimationError):
    """Query time lies outside the animation's duration."""

    pass


class SequenceValidationError(AnimationError, ValueError):
    """Sequence data breaks a structural invariant."""

    pass


class RangeInvariantError(SequenceValidationError):
    """A range keyframe's end_time overlaps the next keyframe or track end."""

    pass


class MixedVariantError(AnimationError, ValueError):
    """A bracket's keyframes hold different value variants."""

    pass


class AssignmentInfeasibleError(AnimationError):
    """Cost matrix admits no assignment with finite total cost."""

    pass


class VideoStallError(AnimationError):
    """Decoder returned no frame for a valid request."""

    pass


class FollowUninitializedError(AnimationError):
    """Follow requested without any recorded mouse positions."""

    pass
