"""
Motion Engine for Keyframed Objects

Samples keyframe tracks into per-object transforms, paces video frames
against the animation clock and drives the mouse-follow zoom window.

Usage:
    from motioncore.motion_engine import (
        AnimationEngine,
        KeyframeStore,
        export_frames,
        sample,
    )

    # Sample a single track
    value = sample(track, t=1500)

    # Drive a whole project
    store = KeyframeStore()
    for sequence in project.sequences:
        store.load_sequence(sequence)
    engine = AnimationEngine(store, timeline=project.timeline_state)
    export_frames(engine, total_duration_ms=20_000, fps=60)
"""

from .errors import (
    AnimationError,
    AssignmentInfeasibleError,
    FollowUninitializedError,
    MissingTrackError,
    MixedVariantError,
    OutOfRangeError,
    RangeInvariantError,
    SequenceValidationError,
    SparseTrackError,
    VideoStallError,
)

from .easing import apply_easing

from .keyframe_store import (
    Bracket,
    KeyframeStore,
    find_bracket,
    validate_animation,
    validate_sequence,
)

from .interpolator import (
    SampledValue,
    cubic_bezier,
    interpolate,
    sample,
)

from .clock import PlaybackClock

from .composer import (
    ActiveSegment,
    CompositionUpdate,
    TimelineComposer,
)

from .pacer import VideoPacer

from .follow import (
    FollowController,
    FollowResult,
    UVRect,
    uv_grid,
    zoom_window,
)

from .runtime import (
    ObjectRuntime,
    SynthesisTarget,
    Transform,
    VideoState,
)

from .engine import AnimationEngine, StepReport

from .exporter import export_frames, timeline_duration_ms

__all__ = [
    # Errors
    "AnimationError",
    "AssignmentInfeasibleError",
    "FollowUninitializedError",
    "MissingTrackError",
    "MixedVariantError",
    "OutOfRangeError",
    "RangeInvariantError",
    "SequenceValidationError",
    "SparseTrackError",
    "VideoStallError",
    # Keyframes
    "Bracket",
    "KeyframeStore",
    "find_bracket",
    "validate_animation",
    "validate_sequence",
    # Interpolation
    "SampledValue",
    "apply_easing",
    "cubic_bezier",
    "interpolate",
    "sample",
    # Timing
    "PlaybackClock",
    "ActiveSegment",
    "CompositionUpdate",
    "TimelineComposer",
    "VideoPacer",
    # Follow
    "FollowController",
    "FollowResult",
    "UVRect",
    "uv_grid",
    "zoom_window",
    # Engine
    "AnimationEngine",
    "StepReport",
    "ObjectRuntime",
    "SynthesisTarget",
    "Transform",
    "VideoState",
    # Export
    "export_frames",
    "timeline_duration_ms",
]
