"""
Whole-project schema used for loading saved editor state.

Example usage:
    from motioncore.schemas.project import ProjectState

    with open("project.json") as f:
        project = ProjectState.model_validate_json(f.read())
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel, Field

from .sequence import Sequence
from .timeline import TimelineState


class ProjectState(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    sequences: List[Sequence] = Field(default_factory=list)
    timeline_state: TimelineState = Field(default_factory=TimelineState)

    def get_sequence(self, sequence_id: str) -> Optional[Sequence]:
        for sequence in self.sequences:
            if sequence.id == sequence_id:
                return sequence
        return None
