"""
Sanctuary Storage Module
JSON flat-file storage for the song library.

The library file lives in the configured data directory:
- Linux: ~/.local/share/sanctuary/songs.json
- macOS: ~/Library/Application Support/sanctuary/songs.json
- Windows: %LOCALAPPDATA%/sanctuary/songs.json
"""

from .songs import SongStore

__all__ = ["SongStore"]
