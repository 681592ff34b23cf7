"""
Playback clock.

Wall instants come from an injectable time source (seconds, monotonic) so
tests and the exporter can drive time deterministically.
"""

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PlaybackClock:
    """Tracks play/stop state and converts wall instants into play time."""

    def __init__(self, time_source: Callable[[], float] = time.monotonic):
        self._time_source = time_source
        self.playing = False
        self.t0: Optional[float] = None
        self.last_step: Optional[float] = None
        self._frozen_elapsed = 0.0

    def _now(self, now: Optional[float]) -> float:
        return self._time_source() if now is None else now

    def start(self, now: Optional[float] = None) -> None:
        """Start a new playing epoch at now."""
        now = self._now(now)
        self.playing = True
        self.t0 = now
        self.last_step = None
        self._frozen_elapsed = 0.0
        logger.info("Playback started")

    def stop(self, now: Optional[float] = None) -> None:
        """Stop playback, keeping the elapsed time. Does not rewind."""
        if not self.playing:
            return
        now = self._now(now)
        self._frozen_elapsed = max(0.0, now - self.t0) if self.t0 is not None else 0.0
        self.playing = False
        logger.info(f"Playback stopped at {self._frozen_elapsed:.3f}s")

    def sample_time(self, now: Optional[float] = None, override_s: Optional[float] = None) -> float:
        """
        Current play time in seconds.

        Args:
            now: Wall instant; read from the time source when omitted
            override_s: Explicit play time, returned unchanged when given

        Returns:
            Seconds since start while playing, the frozen elapsed time while
            stopped, and 0.0 before the first start
        """
        if override_s is not None:
            return override_s
        if not self.playing or self.t0 is None:
            return self._frozen_elapsed
        now = self._now(now)
        self.last_step = now
        return max(0.0, now - self.t0)
