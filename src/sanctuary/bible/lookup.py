"""
Sanctuary Scripture Lookup

Serves verse text from a local dataset when it has the passage, otherwise
asks a remote scripture API (bible-api.com compatible) for it.

The local dataset is a nested mapping::

    {"John": {"3": {"16": "For God so loved the world, ..."}}}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .books import BOOKS, CHAPTER_COUNTS

logger = logging.getLogger(__name__)

LocalDataset = Dict[str, Dict[str, Dict[str, str]]]


class ScriptureError(Exception):
    """Base class for scripture lookup failures."""


class VerseNotFound(ScriptureError):
    """The requested passage does not exist locally or remotely."""


class UpstreamError(ScriptureError):
    """The remote API could not be reached or returned garbage."""


def load_local_dataset(path: Path) -> LocalDataset:
    """Load the local Bible dataset, or an empty one if it is unavailable."""
    path = Path(path)
    if not path.exists():
        logger.info(f"Bible data not found at {path}, will use API fallback")
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load Bible data from {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.error(f"Bible data at {path} is not a mapping, ignoring it")
        return {}
    logger.info(f"Local Bible loaded from {path} ({len(data)} books)")
    return data


def _last_verse(verses: Dict[str, str]) -> int:
    """Highest numbered verse in a local chapter."""
    return max((int(v) for v in verses if v.isdigit()), default=0)


class ScriptureService:
    """Local-first verse lookup with a remote API fallback."""

    def __init__(
        self,
        local_data: Optional[LocalDataset] = None,
        api_url: str = "https://bible-api.com",
        translation: str = "kjv",
        timeout: Optional[float] = None,
    ):
        self.local_data = local_data or {}
        self.api_url = api_url.rstrip("/")
        self.translation = translation
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> "ScriptureService":
        return cls(
            local_data=load_local_dataset(config.data.bible_path),
            api_url=config.scripture.api_url,
            translation=config.scripture.translation,
            timeout=config.scripture.timeout,
        )

    def books(self) -> List[str]:
        return list(BOOKS)

    def chapter_count(self, book: str) -> int:
        """Number of chapters in `book`; unknown books count as one chapter."""
        return CHAPTER_COUNTS.get(book, 1)

    def verse(self, book: str, chapter: str, verse: str) -> str:
        """Text of a single verse."""
        text = self._local_chapter(book, chapter).get(str(verse))
        if text:
            return text

        result = self._fetch(f"{book} {chapter}:{verse}")
        if not result.get("text"):
            raise VerseNotFound("Verse not found")
        return str(result["text"]).strip()

    def verses(self, book: str, chapter: str, verse_start: str, verse_end: str) -> str:
        """
        Text of an inclusive verse range.

        Locally available verses are numbered and joined ("16. For God ... 17. For God ...").
        """
        local = self._local_chapter(book, chapter)
        if local:
            try:
                start, end = int(verse_start), int(verse_end)
            except (TypeError, ValueError):
                start, end = 1, 0
            end = min(end, _last_verse(local))
            parts = [
                f"{v}. {local[str(v)]}"
                for v in range(start, end + 1)
                if local.get(str(v))
            ]
            if parts:
                return " ".join(parts)

        result = self._fetch(f"{book} {chapter}:{verse_start}-{verse_end}")
        if not result.get("text"):
            raise VerseNotFound("Verses not found")
        return str(result["text"]).strip()

    def chapter(self, book: str, chapter: str) -> List[Dict[str, Any]]:
        """All verses of a chapter in order, as [{"verse": 1, "text": ...}, ...]."""
        local = self._local_chapter(book, chapter)
        if local:
            return [
                {"verse": int(v), "text": text}
                for v, text in sorted(local.items(), key=lambda item: int(item[0]))
            ]

        result = self._fetch(f"{book} {chapter}")
        verses = result.get("verses")
        if not verses:
            raise VerseNotFound("Chapter not found")
        try:
            return [{"verse": v["verse"], "text": str(v["text"]).strip()} for v in verses]
        except (KeyError, TypeError) as e:
            raise UpstreamError("Failed to parse response") from e

    def _local_chapter(self, book: str, chapter: str) -> Dict[str, str]:
        chapters = self.local_data.get(book)
        if not isinstance(chapters, dict):
            return {}
        verses = chapters.get(str(chapter))
        return verses if isinstance(verses, dict) else {}

    def _fetch(self, reference: str) -> Dict[str, Any]:
        """Ask the remote API for a passage reference like "John 3:16-18"."""
        url = f"{self.api_url}/{quote(reference, safe=':-')}"
        logger.debug(f"Fetching {reference!r} from {url}")
        try:
            response = requests.get(
                url,
                params={"translation": self.translation},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Scripture API request failed for {reference!r}: {e}")
            raise UpstreamError("API request failed") from e

        try:
            result = response.json()
        except ValueError as e:
            logger.error(f"Scripture API returned invalid JSON for {reference!r}")
            raise UpstreamError("Failed to parse response") from e

        if not isinstance(result, dict):
            raise UpstreamError("Failed to parse response")
        return result
