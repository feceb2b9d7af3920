"""
Sanctuary State Management

The single shared presentation document: what the display surface is
showing right now. Every mutation happens under one lock and is followed by
a full snapshot pushed to every listener.
"""

import copy
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from .messages import (
    BiblePayload,
    Direction,
    DisplayPatch,
    LyricsPayload,
    Mode,
    ProgramPayload,
    StatePatch,
    Step,
)

logger = logging.getLogger(__name__)

Snapshot = Dict[str, Any]
Listener = Callable[[Snapshot], None]


@dataclass
class BibleState:
    """Verse currently on screen."""
    book: str = ""
    chapter: str = ""
    verse: str = ""
    text: str = ""

    def to_dict(self) -> dict:
        return {
            "book": self.book,
            "chapter": self.chapter,
            "verse": self.verse,
            "text": self.text,
        }


@dataclass
class LyricsState:
    """Song currently on screen, split into slides."""
    title: str = ""
    current_slide: int = 0
    slides: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "currentSlide": self.current_slide,
            "slides": list(self.slides),
        }


@dataclass
class ProgramState:
    """Service agenda with the highlighted item."""
    current_index: int = 0
    events: List[Any] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "currentIndex": self.current_index,
            "events": copy.deepcopy(self.events),
        }


@dataclass
class DisplaySettings:
    font_size: int = 48
    theme: str = "dark"

    def to_dict(self) -> dict:
        return {"fontSize": self.font_size, "theme": self.theme}


def step_index(index: int, length: int, direction: Direction) -> int:
    """
    Apply a navigation direction to a position in a sequence of `length` items.

    Steps clamp at both ends without wrapping. An integer is taken verbatim,
    even when it falls outside the sequence.
    """
    if direction is Step.NEXT:
        return index + 1 if index < length - 1 else index
    if direction is Step.PREV:
        return index - 1 if index > 0 else index
    return direction


class PresentationState:
    """
    Shared presentation document with thread-safe updates and change notifications.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._mode = Mode.WELCOME
        self._bible = BibleState()
        self._lyrics = LyricsState()
        self._program = ProgramState()
        self._display = DisplaySettings()
        self._listeners: List[Listener] = []

    @property
    def mode(self) -> Mode:
        with self._lock:
            return self._mode

    @property
    def bible(self) -> BibleState:
        with self._lock:
            return self._bible

    @property
    def lyrics(self) -> LyricsState:
        with self._lock:
            return self._lyrics

    @property
    def program(self) -> ProgramState:
        with self._lock:
            return self._program

    @property
    def display(self) -> DisplaySettings:
        with self._lock:
            return self._display

    # ============ Mutations ============

    def merge(self, patch: StatePatch) -> Snapshot:
        """
        Shallow-merge the fields present in `patch`.

        Sub-payloads are replaced wholesale, except display settings which are
        merged field by field.
        """
        with self._lock:
            if patch.mode is not None:
                self._mode = patch.mode
            if patch.bible is not None:
                self._bible = self._bible_from(patch.bible)
            if patch.lyrics is not None:
                self._lyrics = self._lyrics_from(patch.lyrics)
            if patch.program is not None:
                self._program = self._program_from(patch.program)
            if patch.display is not None:
                self._merge_display(patch.display)
            return self._commit()

    def set_bible(self, payload: BiblePayload) -> Snapshot:
        with self._lock:
            self._mode = Mode.BIBLE
            self._bible = self._bible_from(payload)
            return self._commit()

    def set_lyrics(self, payload: LyricsPayload) -> Snapshot:
        with self._lock:
            self._mode = Mode.LYRICS
            self._lyrics = self._lyrics_from(payload)
            return self._commit()

    def set_program(self, payload: ProgramPayload) -> Snapshot:
        with self._lock:
            self._mode = Mode.PROGRAM
            self._program = self._program_from(payload)
            return self._commit()

    def navigate_lyrics(self, direction: Direction) -> Snapshot:
        """Move the current lyrics slide and broadcast."""
        with self._lock:
            lyrics = self._lyrics
            lyrics.current_slide = step_index(lyrics.current_slide, len(lyrics.slides), direction)
            return self._commit()

    def navigate_program(self, direction: Direction) -> Snapshot:
        """Move the highlighted program item and broadcast."""
        with self._lock:
            program = self._program
            program.current_index = step_index(program.current_index, len(program.events), direction)
            return self._commit()

    def set_display(self, patch: DisplayPatch) -> Snapshot:
        with self._lock:
            self._merge_display(patch)
            return self._commit()

    def set_mode(self, mode: Mode) -> Snapshot:
        """Switch panels, keeping whatever payloads are attached."""
        with self._lock:
            self._mode = mode
            return self._commit()

    def clear(self) -> Snapshot:
        """Back to the welcome screen. Payloads are kept."""
        return self.set_mode(Mode.WELCOME)

    # ============ Listeners ============

    def add_listener(self, callback: Listener) -> None:
        """Add a state change listener."""
        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        """Remove a state change listener."""
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def send_snapshot(self, callback: Listener) -> None:
        """
        Hand the current snapshot to one session.

        The lock is held while `callback` runs, so no broadcast can overtake
        the snapshot on its way to a joining session.
        """
        with self._lock:
            callback(self._snapshot())

    def _commit(self) -> Snapshot:
        # Called with the lock held so broadcasts go out in mutation order.
        snapshot = self._snapshot()
        for callback in list(self._listeners):
            try:
                callback(copy.deepcopy(snapshot))
            except Exception:
                logger.exception("State listener failed")
        return snapshot

    # ============ Helpers ============

    def _merge_display(self, patch: DisplayPatch) -> None:
        if patch.font_size is not None:
            self._display.font_size = patch.font_size
        if patch.theme is not None:
            self._display.theme = patch.theme

    @staticmethod
    def _bible_from(payload: BiblePayload) -> BibleState:
        return BibleState(
            book=payload.book,
            chapter=payload.chapter,
            verse=payload.verse,
            text=payload.text,
        )

    @staticmethod
    def _lyrics_from(payload: LyricsPayload) -> LyricsState:
        return LyricsState(
            title=payload.title,
            current_slide=payload.current_slide,
            slides=list(payload.slides),
        )

    @staticmethod
    def _program_from(payload: ProgramPayload) -> ProgramState:
        return ProgramState(
            current_index=payload.current_index,
            events=copy.deepcopy(payload.events),
        )

    def _snapshot(self) -> Snapshot:
        return {
            "mode": self._mode.value,
            "bible": self._bible.to_dict(),
            "lyrics": self._lyrics.to_dict(),
            "program": self._program.to_dict(),
            "display": self._display.to_dict(),
        }

    def to_dict(self) -> Snapshot:
        """Get the full presentation state as a dictionary."""
        with self._lock:
            return self._snapshot()

    def to_json(self) -> str:
        """Get the full presentation state as JSON."""
        return json.dumps(self.to_dict())
