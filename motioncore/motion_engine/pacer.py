"""
Video pacer: decides how many source frames a video advances per step.

The pacer is phase-locked to animation time through num_frames_drawn, the
authoritative frame cursor. Wall-clock time is never compared frame to frame.

Example:
    pacer = VideoPacer(frame_rate=30.0, source_duration_ms=10_000)
    advanced = pacer.advance(0.0, lambda: decoder.decode_next_frame("video-1"))
"""

import logging
import math
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

# Frames within this distance of the clip end are never requested
END_GUARD_S = 1.0


class VideoPacer:
    def __init__(self, frame_rate: float, source_duration_ms: int, max_catch_up: int = 5):
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")
        self.frame_rate = frame_rate
        self.source_duration_ms = source_duration_ms
        self.max_catch_up = max_catch_up
        self.num_frames_drawn = 0
        self.stalls = 0

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.frame_rate

    def _within_duration(self, current_time_s: float) -> bool:
        return current_time_s + END_GUARD_S < self.source_duration_ms / 1000.0

    def frames_due(self, current_time_s: float) -> int:
        """
        Number of frames to decode at current_time_s.

        Returns 1 when the playhead sits inside the current frame slot, the
        capped catch-up count when it lags behind, and 0 otherwise (ahead of
        the cursor, or too close to the end of the clip).
        """
        if not self._within_duration(current_time_s):
            return 0

        interval = self.frame_interval
        current_frame_time = self.num_frames_drawn * interval
        if current_frame_time <= current_time_s < current_frame_time + interval:
            return 1

        lag = current_time_s - current_frame_time
        if lag > 0:
            return min(int(math.floor(lag / interval)), self.max_catch_up)
        return 0

    def advance(self, current_time_s: float, decode: Callable[[], Optional[Any]]) -> bool:
        """
        Decode the frames due at current_time_s.

        Args:
            current_time_s: Animation-local time in seconds
            decode: Returns the next frame, or None when the decoder stalls

        Returns:
            True if at least one frame was decoded
        """
        due = self.frames_due(current_time_s)
        decoded = 0
        for _ in range(due):
            if decode() is None:
                self.stalls += 1
                logger.debug(f"Decoder stalled at frame {self.num_frames_drawn}")
                break
            self.num_frames_drawn += 1
            decoded += 1
        return decoded > 0

    def reset(self) -> None:
        self.num_frames_drawn = 0
        self.stalls = 0
