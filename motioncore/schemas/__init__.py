"""
Pydantic schemas for motioncore.

Example usage:
    from motioncore.schemas import Sequence, AnimationData, PropertyTrack, Keyframe
"""

from .animation import AnimationData, ObjectKind
from .capture import CaptureRecording, MousePosition, SourceData
from .keyframe import (
    BezierPath,
    CustomValue,
    EasingType,
    FrameKind,
    Keyframe,
    KeyKind,
    KeyValue,
    LinearPath,
    OpacityValue,
    PathType,
    PerspectiveXValue,
    PerspectiveYValue,
    Point,
    PositionValue,
    PropertyTrack,
    RangeKind,
    RotationValue,
    ScaleValue,
    ZoomValue,
)
from .project import ProjectState
from .sequence import (
    BackgroundFill,
    ColorFill,
    GradientFill,
    ImageItemConfig,
    ObjectConfig,
    PolygonConfig,
    Sequence,
    TextItemConfig,
    VideoItemConfig,
)
from .timeline import TimelineEntry, TimelineState, TrackKind

__all__ = [
    # Keyframes
    "Point",
    "Keyframe",
    "KeyValue",
    "PositionValue",
    "RotationValue",
    "ScaleValue",
    "OpacityValue",
    "ZoomValue",
    "PerspectiveXValue",
    "PerspectiveYValue",
    "CustomValue",
    "EasingType",
    "PathType",
    "LinearPath",
    "BezierPath",
    "KeyKind",
    "FrameKind",
    "RangeKind",
    "PropertyTrack",
    # Animation
    "AnimationData",
    "ObjectKind",
    # Sequence
    "Sequence",
    "BackgroundFill",
    "ColorFill",
    "GradientFill",
    "ObjectConfig",
    "PolygonConfig",
    "TextItemConfig",
    "ImageItemConfig",
    "VideoItemConfig",
    # Timeline
    "TimelineEntry",
    "TimelineState",
    "TrackKind",
    # Capture
    "MousePosition",
    "SourceData",
    "CaptureRecording",
    # Project
    "ProjectState",
]
