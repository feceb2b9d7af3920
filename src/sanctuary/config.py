"""
Sanctuary Configuration Management

Loads settings from an optional JSON file with environment variable overrides.
"""

import os
import sys
import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


def get_data_dir() -> Path:
    """Get platform-appropriate data directory for Sanctuary."""
    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        # Linux/Unix - follow XDG spec
        base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))

    return base / "sanctuary"


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False


@dataclass
class DataConfig:
    data_dir: Path = field(default_factory=get_data_dir)
    songs_file: str = "songs.json"
    bible_file: str = "kjv.json"

    @property
    def songs_path(self) -> Path:
        return Path(self.data_dir) / self.songs_file

    @property
    def bible_path(self) -> Path:
        return Path(self.data_dir) / self.bible_file


@dataclass
class ScriptureConfig:
    api_url: str = "https://bible-api.com"
    translation: str = "kjv"
    timeout: Optional[float] = None  # None: wait as long as the transport does


@dataclass
class Config:
    web: WebConfig = field(default_factory=WebConfig)
    data: DataConfig = field(default_factory=DataConfig)
    scripture: ScriptureConfig = field(default_factory=ScriptureConfig)
    debug: bool = False


def _is_true(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from JSON file with environment variable overrides.

    Priority (highest to lowest):
    1. Environment variables (PORT, SANCTUARY_*)
    2. Config file values
    3. Default values
    """
    config = Config()

    if config_path is not None:
        config_path = Path(config_path)

    if config_path is not None and config_path.exists():
        with open(config_path, "r") as f:
            data = json.load(f)

        if "web" in data:
            config.web.host = data["web"].get("host", config.web.host)
            config.web.port = data["web"].get("port", config.web.port)
            config.web.debug = data["web"].get("debug", config.web.debug)

        if "data" in data:
            if "data_dir" in data["data"]:
                config.data.data_dir = Path(data["data"]["data_dir"]).expanduser()
            config.data.songs_file = data["data"].get("songs_file", config.data.songs_file)
            config.data.bible_file = data["data"].get("bible_file", config.data.bible_file)

        if "scripture" in data:
            config.scripture.api_url = data["scripture"].get("api_url", config.scripture.api_url)
            config.scripture.translation = data["scripture"].get("translation", config.scripture.translation)
            config.scripture.timeout = data["scripture"].get("timeout", config.scripture.timeout)

        config.debug = data.get("debug", config.debug)

    # Environment variable overrides
    if os.environ.get("PORT"):
        config.web.port = int(os.environ["PORT"])
    if os.environ.get("SANCTUARY_HOST"):
        config.web.host = os.environ["SANCTUARY_HOST"]
    if os.environ.get("SANCTUARY_DATA_DIR"):
        config.data.data_dir = Path(os.environ["SANCTUARY_DATA_DIR"]).expanduser()
    if os.environ.get("SANCTUARY_BIBLE_API"):
        config.scripture.api_url = os.environ["SANCTUARY_BIBLE_API"]
    if os.environ.get("SANCTUARY_DEBUG"):
        config.debug = _is_true(os.environ["SANCTUARY_DEBUG"])

    return config


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance, loading it if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Config) -> None:
    """Set the global config instance."""
    global _config
    _config = config
