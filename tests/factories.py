"""
Builders for keyframes, tracks, animations and sequences used across tests.
"""

from typing import List, Optional, Sequence, Tuple

from motioncore.schemas import (
    AnimationData,
    BezierPath,
    ColorFill,
    ImageItemConfig,
    Keyframe,
    LinearPath,
    OpacityValue,
    PolygonConfig,
    PositionValue,
    PropertyTrack,
    RangeKind,
    RotationValue,
    ScaleValue,
    Sequence as SequenceModel,
    TextItemConfig,
    VideoItemConfig,
    ZoomValue,
)


def position_kf(
    time: int,
    x: int,
    y: int,
    easing: str = "linear",
    bezier: bool = False,
    end_time: Optional[int] = None,
) -> Keyframe:
    kwargs = {}
    if end_time is not None:
        kwargs["kind"] = RangeKind(end_time=end_time)
    return Keyframe(
        time=time,
        value=PositionValue(value=(x, y)),
        easing=easing,
        path=BezierPath() if bezier else LinearPath(),
        **kwargs,
    )


def make_track(property_path: str, keyframes: Sequence[Keyframe], name: Optional[str] = None) -> PropertyTrack:
    return PropertyTrack(
        name=name or property_path.capitalize(),
        property_path=property_path,
        keyframes=list(keyframes),
    )


def scalar_track(property_path: str, points: Sequence[Tuple[int, int]]) -> PropertyTrack:
    """Track of (time, value) pairs for rotation, scale, opacity or zoom."""
    value_types = {
        "rotation": RotationValue,
        "scale": ScaleValue,
        "opacity": OpacityValue,
        "zoom": ZoomValue,
    }
    cls = value_types[property_path]
    return make_track(property_path, [Keyframe(time=t, value=cls(value=v)) for t, v in points])


def make_animation(
    object_id: str,
    object_kind: str = "polygon",
    duration: int = 4000,
    positions: Optional[Sequence[Keyframe]] = None,
    start_time_ms: int = 0,
    group_offset: Tuple[int, int] = (0, 0),
    rotation: Tuple[int, int] = (0, 0),
    scale: Tuple[int, int] = (100, 100),
    opacity: Tuple[int, int] = (100, 100),
    zoom: Tuple[int, int] = (100, 100),
    include: Optional[List[str]] = None,
) -> AnimationData:
    """
    Animation with position, rotation, scale and opacity tracks (plus zoom
    for videos). Scalar tracks go from the first to the second value over
    the duration.
    """
    if positions is None:
        positions = [position_kf(0, 0, 0), position_kf(duration, 100, 0)]
    tracks = [
        make_track("position", positions),
        scalar_track("rotation", [(0, rotation[0]), (duration, rotation[1])]),
        scalar_track("scale", [(0, scale[0]), (duration, scale[1])]),
        scalar_track("opacity", [(0, opacity[0]), (duration, opacity[1])]),
    ]
    if object_kind == "video":
        tracks.append(scalar_track("zoom", [(0, zoom[0]), (duration, zoom[1])]))
    if include is not None:
        tracks = [t for t in tracks if t.property_path in include]
    return AnimationData(
        object_id=object_id,
        object_kind=object_kind,
        duration=duration,
        start_time_ms=start_time_ms,
        position=group_offset,
        properties=tracks,
    )


def make_polygon(object_id: str, position: Tuple[int, int] = (0, 0), layer: int = 0) -> PolygonConfig:
    return PolygonConfig(id=object_id, name=object_id, dimensions=(100.0, 100.0), position=position, layer=layer)


def make_text(object_id: str, position: Tuple[int, int] = (0, 0)) -> TextItemConfig:
    return TextItemConfig(id=object_id, name=object_id, text="Hello", dimensions=(200.0, 50.0), position=position)


def make_image(object_id: str, position: Tuple[int, int] = (0, 0)) -> ImageItemConfig:
    return ImageItemConfig(id=object_id, name=object_id, dimensions=(200.0, 100.0), position=position)


def make_video(
    object_id: str,
    position: Tuple[int, int] = (0, 0),
    frame_rate: float = 30.0,
    source_duration_ms: int = 10_000,
    dimensions: Tuple[float, float] = (800.0, 450.0),
) -> VideoItemConfig:
    return VideoItemConfig(
        id=object_id,
        name=object_id,
        dimensions=dimensions,
        position=position,
        source_duration_ms=source_duration_ms,
        source_frame_rate=frame_rate,
        source_dimensions=(1920, 1080),
    )


def make_sequence(
    sequence_id: str = "seq-1",
    duration_ms: int = 4000,
    polygons: Sequence[PolygonConfig] = (),
    texts: Sequence[TextItemConfig] = (),
    images: Sequence[ImageItemConfig] = (),
    videos: Sequence[VideoItemConfig] = (),
    animations: Sequence[AnimationData] = (),
    background: Optional[Tuple[int, int, int, int]] = None,
) -> SequenceModel:
    return SequenceModel(
        id=sequence_id,
        name=sequence_id,
        duration_ms=duration_ms,
        background_fill=ColorFill(color=background) if background else None,
        active_polygons=list(polygons),
        active_text_items=list(texts),
        active_image_items=list(images),
        active_video_items=list(videos),
        polygon_motion_paths=list(animations),
    )
