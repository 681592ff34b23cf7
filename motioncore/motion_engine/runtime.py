"""
Per-object runtime state held by the animation engine.

Every object kind shares one Transform record. Video objects additionally
carry a VideoState with their pacer and follow controller.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from ..schemas.capture import MousePosition, SourceData
from ..schemas.sequence import ObjectConfig, VideoItemConfig
from .follow import FULL_TEXTURE, FollowController, UVRect
from .pacer import VideoPacer

Vec2 = Tuple[float, float]


@dataclass
class Transform:
    """Position in canvas pixels, rotation in radians, scale per axis, opacity 0-1."""

    position: Vec2 = (0.0, 0.0)
    rotation: float = 0.0
    scale: Vec2 = (1.0, 1.0)
    opacity: float = 1.0
    layer: int = 0

    def matrix(self) -> np.ndarray:
        """4x4 model matrix T * Rz * S, with the layer as z translation."""
        cos_r = np.cos(self.rotation)
        sin_r = np.sin(self.rotation)

        translate = np.identity(4)
        translate[0, 3] = self.position[0]
        translate[1, 3] = self.position[1]
        translate[2, 3] = float(self.layer)

        rotate = np.identity(4)
        rotate[0, 0] = cos_r
        rotate[0, 1] = -sin_r
        rotate[1, 0] = sin_r
        rotate[1, 1] = cos_r

        scale = np.diag([self.scale[0], self.scale[1], 1.0, 1.0])
        return translate @ rotate @ scale


@dataclass
class VideoState:
    pacer: VideoPacer
    follow: FollowController = field(default_factory=FollowController)
    uv_rect: UVRect = FULL_TEXTURE
    uv_grid: Optional[np.ndarray] = None
    mouse_positions: List[MousePosition] = field(default_factory=list)
    source_data: Optional[SourceData] = None

    def reset(self) -> None:
        self.pacer.reset()
        self.follow.reset()
        self.uv_rect = FULL_TEXTURE
        self.uv_grid = None


def base_scale(object_kind: str, config: ObjectConfig) -> Vec2:
    """Scale at 100%: unit for vector shapes, the quad dimensions for raster objects."""
    if object_kind in ("image", "video"):
        return (float(config.dimensions[0]), float(config.dimensions[1]))
    return (1.0, 1.0)


@dataclass
class ObjectRuntime:
    object_id: str
    object_kind: str
    sequence_id: str
    config: ObjectConfig
    transform: Transform = field(default_factory=Transform)
    hidden: bool = True
    video: Optional[VideoState] = None

    def reset(self, canvas_offset: Vec2 = (0.0, 0.0)) -> None:
        """Restore the declared initial position, rotation 0, scale 1 and opacity 1."""
        self.transform = Transform(
            position=(
                self.config.position[0] + canvas_offset[0],
                self.config.position[1] + canvas_offset[1],
            ),
            rotation=0.0,
            scale=base_scale(self.object_kind, self.config),
            opacity=1.0,
            layer=self.config.layer,
        )
        if self.video is not None:
            self.video.reset()


def build_runtime(
    object_kind: str,
    config: ObjectConfig,
    sequence_id: str,
    max_catch_up: int = 5,
) -> ObjectRuntime:
    """Create the runtime for one object, including video state for videos."""
    video = None
    if isinstance(config, VideoItemConfig):
        video = VideoState(
            pacer=VideoPacer(
                frame_rate=config.source_frame_rate,
                source_duration_ms=config.source_duration_ms,
                max_catch_up=max_catch_up,
            ),
        )
    runtime = ObjectRuntime(
        object_id=config.id,
        object_kind=object_kind,
        sequence_id=sequence_id,
        config=config,
        video=video,
    )
    runtime.reset()
    return runtime


@dataclass(frozen=True)
class SynthesisTarget:
    """A visible object's current placement, as seen by motion path generation."""

    object_id: str
    object_kind: str
    position: Vec2
    dimensions: Vec2
    duration_ms: int
