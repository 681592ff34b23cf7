"""
Contracts of the host-side collaborators the engine talks to.

The core never implements GPU, codec, capture or model logic; hosts pass
objects satisfying these protocols.
"""

from typing import Any, Optional, Protocol, Sequence

import numpy as np

from ..schemas.capture import CaptureRecording
from ..schemas.sequence import VideoItemConfig
from .follow import UVRect


class Renderer(Protocol):
    def upload_texture(self, object_id: str, data: Any, width: int, height: int) -> None:
        ...

    def set_transform(self, object_id: str, matrix: np.ndarray) -> None:
        ...

    def set_uv_quad(self, object_id: str, uv_rect: UVRect) -> None:
        ...

    def set_background(self, color: Sequence[float]) -> None:
        ...


class VideoDecoder(Protocol):
    def decode_next_frame(self, object_id: str) -> Optional[Any]:
        """Next decoded frame for the object, or None when the decoder stalls."""
        ...

    def reset(self, object_id: str) -> None:
        """Rewind the object's stream to its first frame."""
        ...


class CaptureSource(Protocol):
    def load(self, video: VideoItemConfig) -> Optional[CaptureRecording]:
        """Recorded mouse trajectory and source window for a video object."""
        ...


class Predictor(Protocol):
    def predict(self, prompt: str) -> Sequence[float]:
        """Flat predictions laid out as objects x 6 keyframes x 7 features."""
        ...
