"""
Shared fixtures for motioncore tests.

Provides recording fakes for the renderer and video decoder collaborators and
a Settings instance that ignores any local .env file.
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from motioncore.core.config import Settings


class RecordingRenderer:
    """Renderer fake that records every call."""

    def __init__(self):
        self.transforms: Dict[str, Any] = {}
        self.uv_quads: Dict[str, Any] = {}
        self.uploads: List[Tuple[str, Any, int, int]] = []
        self.backgrounds: List[Tuple[float, ...]] = []

    def upload_texture(self, object_id, data, width, height):
        self.uploads.append((object_id, data, width, height))

    def set_transform(self, object_id, matrix):
        self.transforms[object_id] = matrix

    def set_uv_quad(self, object_id, uv_rect):
        self.uv_quads[object_id] = uv_rect

    def set_background(self, color):
        self.backgrounds.append(tuple(color))


class ScriptedDecoder:
    """Decoder fake returning frame numbers, or None when told to stall."""

    def __init__(self, stall: bool = False):
        self.stall = stall
        self.decoded: Dict[str, int] = {}
        self.resets: List[str] = []

    def decode_next_frame(self, object_id: str) -> Optional[int]:
        if self.stall:
            return None
        self.decoded[object_id] = self.decoded.get(object_id, 0) + 1
        return self.decoded[object_id]

    def reset(self, object_id: str) -> None:
        self.resets.append(object_id)
        self.decoded[object_id] = 0


@pytest.fixture
def settings():
    """Default settings, independent of the environment's .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def decoder():
    return ScriptedDecoder()
