"""
Loading recorded capture data for video follow-zoom.

A capture directory holds mousePositions.json and sourceData.json, written
by the screen recorder next to the captured video.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from ..schemas.capture import CaptureRecording, MousePosition, SourceData
from ..schemas.sequence import VideoItemConfig

logger = logging.getLogger(__name__)

MOUSE_POSITIONS_FILE = "mousePositions.json"
SOURCE_DATA_FILE = "sourceData.json"

_mouse_positions_adapter = TypeAdapter(List[MousePosition])


def load_capture(project_dir: Union[str, Path]) -> Optional[CaptureRecording]:
    """
    Load a capture recording from a directory.

    Args:
        project_dir: Directory containing mousePositions.json and sourceData.json

    Returns:
        CaptureRecording with positions sorted by timestamp, or None when
        either file is missing or malformed
    """
    directory = Path(project_dir)
    mouse_file = directory / MOUSE_POSITIONS_FILE
    source_file = directory / SOURCE_DATA_FILE

    if not mouse_file.is_file() or not source_file.is_file():
        logger.info(f"No capture data in {directory}")
        return None

    try:
        positions = _mouse_positions_adapter.validate_json(mouse_file.read_bytes())
        source_data = SourceData.model_validate_json(source_file.read_bytes())
    except (ValidationError, json.JSONDecodeError, OSError) as exc:
        logger.warning(f"Failed to load capture data from {directory}: {exc}")
        return None

    positions = sorted(positions, key=lambda p: p.timestamp_ms)
    logger.debug(f"Loaded {len(positions)} mouse positions from {mouse_file}")
    return CaptureRecording(mouse_positions=positions, source_data=source_data)


class FileCaptureSource:
    """
    Capture source backed by directories on disk.

    Looks in <root>/<video id>/ first, then in the directory of the video
    config's mouse_path.
    """

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root) if root is not None else None

    def load(self, video: VideoItemConfig) -> Optional[CaptureRecording]:
        if self.root is not None:
            recording = load_capture(self.root / video.id)
            if recording is not None:
                return recording
        if video.mouse_path:
            return load_capture(Path(video.mouse_path).parent)
        return None
