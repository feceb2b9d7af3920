"""
Sanctuary Message Payloads

Explicit structures for the payload of each control message. Every field a
patch may carry is optional; a field left as None means "leave untouched".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class PayloadError(ValueError):
    """Raised when an incoming message payload cannot be used."""


class Mode(str, Enum):
    """Which panel the display surface renders."""
    WELCOME = "welcome"
    BIBLE = "bible"
    LYRICS = "lyrics"
    PROGRAM = "program"

    @classmethod
    def parse(cls, value: Any) -> "Mode":
        try:
            return cls(value)
        except ValueError:
            raise PayloadError(f"Unknown mode: {value!r}") from None


class Step(str, Enum):
    """Relative navigation step."""
    NEXT = "next"
    PREV = "prev"


# A navigation target: one step either way, or an absolute index.
Direction = Union[Step, int]


def parse_direction(value: Any) -> Direction:
    """Parse a navigation direction ("next", "prev" or an integer index)."""
    # bool is an int subclass but never a valid index
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return Step(value)
        except ValueError:
            pass
    raise PayloadError(f"Invalid navigation direction: {value!r}")


def _require_mapping(data: Any, kind: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise PayloadError(f"{kind} payload must be an object, got {type(data).__name__}")
    return data


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise PayloadError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PayloadError(f"{name} must be an integer, got {value!r}") from None


@dataclass
class BiblePayload:
    book: str = ""
    chapter: str = ""
    verse: str = ""
    text: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "BiblePayload":
        data = _require_mapping(data, "bible")
        return cls(
            book=str(data.get("book", "")),
            chapter=str(data.get("chapter", "")),
            verse=str(data.get("verse", "")),
            text=str(data.get("text", "")),
        )


@dataclass
class LyricsPayload:
    title: str = ""
    current_slide: int = 0
    slides: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "LyricsPayload":
        data = _require_mapping(data, "lyrics")
        slides = data.get("slides") or []
        if not isinstance(slides, list):
            raise PayloadError("lyrics.slides must be a list")
        return cls(
            title=str(data.get("title", "")),
            current_slide=_as_int(data.get("currentSlide", 0), "lyrics.currentSlide"),
            slides=[str(s) for s in slides],
        )


@dataclass
class ProgramPayload:
    current_index: int = 0
    events: List[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ProgramPayload":
        data = _require_mapping(data, "program")
        events = data.get("events") or []
        if not isinstance(events, list):
            raise PayloadError("program.events must be a list")
        return cls(
            current_index=_as_int(data.get("currentIndex", 0), "program.currentIndex"),
            events=list(events),
        )


@dataclass
class DisplayPatch:
    font_size: Optional[int] = None
    theme: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "DisplayPatch":
        data = _require_mapping(data, "display")
        patch = cls()
        if "fontSize" in data:
            patch.font_size = _as_int(data["fontSize"], "display.fontSize")
            if patch.font_size <= 0:
                raise PayloadError("display.fontSize must be positive")
        if "theme" in data:
            patch.theme = str(data["theme"])
        return patch


@dataclass
class StatePatch:
    """Top-level fields of an update-state message."""
    mode: Optional[Mode] = None
    bible: Optional[BiblePayload] = None
    lyrics: Optional[LyricsPayload] = None
    program: Optional[ProgramPayload] = None
    display: Optional[DisplayPatch] = None

    @classmethod
    def from_dict(cls, data: Any) -> "StatePatch":
        data = _require_mapping(data, "state")
        return cls(
            mode=Mode.parse(data["mode"]) if "mode" in data else None,
            bible=BiblePayload.from_dict(data["bible"]) if "bible" in data else None,
            lyrics=LyricsPayload.from_dict(data["lyrics"]) if "lyrics" in data else None,
            program=ProgramPayload.from_dict(data["program"]) if "program" in data else None,
            display=DisplayPatch.from_dict(data["display"]) if "display" in data else None,
        )
