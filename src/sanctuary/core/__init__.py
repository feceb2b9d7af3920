"""Sanctuary Core Components"""

from .messages import (
    BiblePayload,
    DisplayPatch,
    LyricsPayload,
    Mode,
    PayloadError,
    ProgramPayload,
    StatePatch,
    Step,
    parse_direction,
)
from .state import PresentationState

__all__ = [
    "BiblePayload",
    "DisplayPatch",
    "LyricsPayload",
    "Mode",
    "PayloadError",
    "PresentationState",
    "ProgramPayload",
    "StatePatch",
    "Step",
    "parse_direction",
]
