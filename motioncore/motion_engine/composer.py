"""
Timeline composer: maps timeline time to the active sequence.

Only video-track entries are considered. When entries overlap, the first in
declaration order wins. Entries whose sequence is not available are skipped.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Set

from ..schemas.timeline import TimelineEntry, TimelineState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveSegment:
    sequence_id: str
    local_time_ms: float
    entry: TimelineEntry


@dataclass(frozen=True)
class CompositionUpdate:
    """Result of one composer update."""

    active: Optional[ActiveSegment]
    switched: bool


class TimelineComposer:
    def __init__(
        self,
        timeline: TimelineState,
        is_available: Optional[Callable[[str], bool]] = None,
    ):
        self.timeline = timeline
        self.is_available = is_available
        self.active_sequence_id: Optional[str] = None
        self._missing: Set[str] = set()

    def _available(self, sequence_id: str) -> bool:
        if self.is_available is None or self.is_available(sequence_id):
            return True
        if sequence_id not in self._missing:
            self._missing.add(sequence_id)
            logger.warning(f"Timeline entry references unknown sequence {sequence_id}, skipping it")
        return False

    def resolve(self, t_ms: float) -> Optional[ActiveSegment]:
        """Return the first available video entry containing t_ms, or None."""
        for entry in self.timeline.timeline_sequences:
            if entry.track_kind != "video":
                continue
            if entry.contains(t_ms) and self._available(entry.sequence_id):
                return ActiveSegment(
                    sequence_id=entry.sequence_id,
                    local_time_ms=t_ms - entry.start_time_ms,
                    entry=entry,
                )
        return None

    def update(self, t_ms: float) -> CompositionUpdate:
        """
        Resolve t_ms and track sequence switches.

        switched is True whenever a different sequence becomes active,
        including the first activation. Leaving every entry keeps the last
        active sequence id so re-entering it does not count as a switch.
        """
        active = self.resolve(t_ms)
        if active is None:
            return CompositionUpdate(active=None, switched=False)

        switched = active.sequence_id != self.active_sequence_id
        if switched:
            logger.info(
                f"Timeline switched to sequence {active.sequence_id} at {t_ms:.0f}ms "
                f"(entry {active.entry.id})"
            )
            self.active_sequence_id = active.sequence_id
        return CompositionUpdate(active=active, switched=switched)

    def reset(self) -> None:
        self.active_sequence_id = None
