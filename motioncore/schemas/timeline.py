"""
Pydantic schemas for the project timeline.
"""

import uuid
from typing import List, Literal

from pydantic import BaseModel, Field

TrackKind = Literal["video", "audio"]


class TimelineEntry(BaseModel):
    """A sequence placed on the timeline."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    sequence_id: str = Field(..., description="Sequence played by this entry")
    track_kind: TrackKind = Field("video", description="Track the entry sits on")
    start_time_ms: int = Field(0, ge=0, description="Timeline start (milliseconds)")
    duration_ms: int = Field(..., gt=0, description="Entry duration (milliseconds)")

    @property
    def end_time_ms(self) -> int:
        return self.start_time_ms + self.duration_ms

    def contains(self, t_ms: int) -> bool:
        """True when start <= t_ms < start + duration."""
        return self.start_time_ms <= t_ms < self.end_time_ms


class TimelineState(BaseModel):
    """Ordered timeline entries. Declaration order breaks overlaps."""

    timeline_sequences: List[TimelineEntry] = Field(default_factory=list)
