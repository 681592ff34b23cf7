"""
Offline export loop.

Steps the engine at fixed frame times, independent of wall-clock time, and
hands each step to a caller-supplied sink.
"""

import logging
import math
from typing import Callable, Optional

from ..schemas.timeline import TimelineState
from .engine import AnimationEngine, StepReport

logger = logging.getLogger(__name__)

PROGRESS_EVERY_FRAMES = 60


def timeline_duration_ms(timeline: TimelineState) -> int:
    """End time of the last video entry, 0 for an empty timeline."""
    ends = [e.end_time_ms for e in timeline.timeline_sequences if e.track_kind == "video"]
    return max(ends, default=0)


def export_frames(
    engine: AnimationEngine,
    total_duration_ms: int,
    fps: int,
    on_frame: Optional[Callable[[int, StepReport], None]] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> int:
    """
    Run the engine over a fixed-rate frame grid.

    Args:
        engine: Engine to drive; play() is called before the first frame
        total_duration_ms: Length of the export
        fps: Output frames per second
        on_frame: Called with (frame_index, report) after each step
        should_cancel: Polled between steps; True stops the export

    Returns:
        Number of frames produced

    Raises:
        ValueError: If fps is not positive
    """
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")

    total_s = total_duration_ms / 1000.0
    total_frames = math.ceil(total_s * fps)
    logger.info(f"Exporting {total_frames} frames at {fps}fps ({total_duration_ms}ms)")

    engine.play()
    produced = 0
    for frame_index in range(total_frames):
        if should_cancel is not None and should_cancel():
            logger.info(f"Export cancelled after {produced} frames")
            break

        report = engine.step(override_s=frame_index / fps)
        if on_frame is not None:
            on_frame(frame_index, report)
        produced += 1

        if produced % PROGRESS_EVERY_FRAMES == 0:
            progress = produced / total_frames * 100
            logger.info(f"Export progress: {produced}/{total_frames} frames ({progress:.1f}%)")

    engine.stop()
    logger.info(f"Export finished: {produced} frames")
    return produced
