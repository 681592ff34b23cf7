"""
Pydantic schemas for recorded capture data (mouse trajectory and source window).

On-disk layout, per capture directory:
    mousePositions.json  -> [{"x": 10.0, "y": 20.0, "timestamp": 0}, ...]
    sourceData.json      -> {"id": 1, "name": "...", "width": 1920, ...}
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class MousePosition(BaseModel):
    """A recorded mouse sample in source-window pixels."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    x: float
    y: float
    timestamp_ms: int = Field(..., ge=0, alias="timestamp", description="Milliseconds since capture start")


class SourceData(BaseModel):
    """The captured window's origin and size at capture time."""

    id: int = 0
    name: str = ""
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    x: int = 0
    y: int = 0
    scale_factor: float = 1.0


class CaptureRecording(BaseModel):
    """Mouse trajectory plus the source window it was recorded against."""

    mouse_positions: List[MousePosition] = Field(default_factory=list)
    source_data: SourceData
