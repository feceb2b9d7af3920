"""
Sanctuary Song Library - flat-file JSON storage for song lyrics.

The whole library lives in memory, sorted by title, and is rewritten to a
single JSON array on disk after every change.
"""

import copy
import json
import logging
import threading
import time
import unicodedata
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..core.messages import PayloadError

logger = logging.getLogger(__name__)

SongRecord = Dict[str, Any]
Listener = Callable[[List[SongRecord]], None]


def _title_key(song: SongRecord):
    # Accents and case only break ties: "Éternel" sorts with the Es
    title = str(song.get("title", ""))
    bare = "".join(
        c for c in unicodedata.normalize("NFKD", title) if not unicodedata.combining(c)
    )
    return (bare.casefold(), title.casefold(), title)


class SongStore:
    """Song library with thread-safe mutations and write-through persistence."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._songs: List[SongRecord] = []
        self._listeners: List[Listener] = []

    def load(self) -> List[SongRecord]:
        """Load the library from disk, creating an empty file if there is none."""
        with self._lock:
            try:
                if self.path.exists():
                    with open(self.path, "r", encoding="utf-8") as f:
                        songs = json.load(f)
                    if not isinstance(songs, list):
                        raise ValueError("song library must be a JSON array")
                    self._songs = [s for s in songs if isinstance(s, dict)]
                    if len(self._songs) < len(songs):
                        logger.warning(
                            f"Skipped {len(songs) - len(self._songs)} malformed entries in {self.path}"
                        )
                    logger.info(f"Loaded {len(self._songs)} songs from library")
                else:
                    self.path.parent.mkdir(parents=True, exist_ok=True)
                    self.path.write_text("[]", encoding="utf-8")
                    self._songs = []
                    logger.info(f"Created empty song library at {self.path}")
            except (OSError, ValueError) as e:
                logger.error(f"Error loading songs: {e}")
                self._songs = []
            return self.list()

    def list(self) -> List[SongRecord]:
        """Current library, sorted by title."""
        with self._lock:
            return copy.deepcopy(self._songs)

    def save(self, record: Any) -> SongRecord:
        """
        Add a new song or replace the one with the same id.

        Records without an id (or with an id the library has never seen) are
        added; a time-based id is assigned when none is given.

        Returns:
            The stored record, including its id.
        """
        if not isinstance(record, dict):
            raise PayloadError("song must be an object")
        if "title" not in record:
            raise PayloadError("song title is required")

        record = copy.deepcopy(record)
        with self._lock:
            index = self._index_of(record.get("id"))
            if index is not None:
                self._songs[index] = record
                logger.info(f"Updated song {record['id']}: {record['title']}")
            else:
                if not record.get("id"):
                    record["id"] = self._new_id()
                self._songs.append(record)
                logger.info(f"Added song {record['id']}: {record['title']}")

            self._songs.sort(key=_title_key)
            self.persist()
            self._notify_listeners()
            return copy.deepcopy(record)

    def delete(self, song_id: str) -> bool:
        """Remove a song. Missing ids are not an error; the file is rewritten either way."""
        with self._lock:
            before = len(self._songs)
            self._songs = [s for s in self._songs if s.get("id") != song_id]
            removed = len(self._songs) < before
            if removed:
                logger.info(f"Deleted song {song_id}")
            else:
                logger.debug(f"Delete of unknown song {song_id} ignored")
            self.persist()
            self._notify_listeners()
            return removed

    def persist(self) -> bool:
        """Rewrite the library file. Failures are logged, never raised."""
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "w", encoding="utf-8") as f:
                    json.dump(self._songs, f, indent=2, ensure_ascii=False)
                return True
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"Error saving songs: {e}")
                return False

    def add_listener(self, callback: Listener) -> None:
        """Add a library change listener."""
        with self._lock:
            self._listeners.append(callback)

    def _notify_listeners(self) -> None:
        # Lock is held: listeners see changes in the order they were made.
        for callback in list(self._listeners):
            try:
                callback(self.list())
            except Exception:
                logger.exception("Song library listener failed")

    def _index_of(self, song_id: Any) -> Optional[int]:
        if song_id is None:
            return None
        for i, song in enumerate(self._songs):
            if song.get("id") == song_id:
                return i
        return None

    def _new_id(self) -> str:
        existing = {s.get("id") for s in self._songs}
        stamp = int(time.time() * 1000)
        while str(stamp) in existing:
            stamp += 1
        return str(stamp)

    def __len__(self) -> int:
        with self._lock:
            return len(self._songs)
