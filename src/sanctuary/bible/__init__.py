"""Sanctuary Scripture Lookup"""

from .books import BOOKS, CHAPTER_COUNTS
from .lookup import (
    ScriptureError,
    ScriptureService,
    UpstreamError,
    VerseNotFound,
    load_local_dataset,
)

__all__ = [
    "BOOKS",
    "CHAPTER_COUNTS",
    "ScriptureError",
    "ScriptureService",
    "UpstreamError",
    "VerseNotFound",
    "load_local_dataset",
]
