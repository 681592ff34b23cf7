"""
Offline services: motion path synthesis, assignment and capture loading.
"""

from .assignment import assignment_cost, solve_assignment
from .capture_loader import FileCaptureSource, load_capture
from .path_synthesizer import (
    GenerationOptions,
    PathSynthesizer,
    encode_prompt,
    keyframe_timestamps,
)

__all__ = [
    "solve_assignment",
    "assignment_cost",
    "load_capture",
    "FileCaptureSource",
    "GenerationOptions",
    "PathSynthesizer",
    "encode_prompt",
    "keyframe_timestamps",
]
