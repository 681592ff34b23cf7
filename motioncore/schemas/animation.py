"""
Pydantic schema for one object's animation.
"""

import uuid
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from .keyframe import PropertyTrack

ObjectKind = Literal["polygon", "text", "image", "video"]


class AnimationData(BaseModel):
    """All property tracks driving one object inside a sequence.

    The object is referenced by id only. The owning Sequence holds both the
    object config and this record.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Animation UUID")
    object_id: str = Field(..., description="Id of the animated object in the sequence")
    object_kind: ObjectKind = Field(..., description="Kind of the animated object")
    duration: int = Field(..., ge=0, description="Animation duration in milliseconds")
    start_time_ms: int = Field(0, ge=0, description="Offset from the sequence start (milliseconds)")
    position: Tuple[int, int] = Field((0, 0), description="Group offset added to sampled positions")
    properties: List[PropertyTrack] = Field(default_factory=list)

    def track(self, property_path: str) -> Optional[PropertyTrack]:
        """Return the first track with the given property path, or None."""
        for prop in self.properties:
            if prop.property_path == property_path:
                return prop
        return None
