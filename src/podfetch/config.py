"""
Configuration loading and discovery.

The configuration is a TOML file listing the podcasts to fetch and the
directory episodes are downloaded to::

    directory = "~/Podcasts"
    workers = 4

    [[podcasts]]
    name = "Show Name"
    uri = "https://example.com/feed.xml"
    episodes = 3
"""

import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ConfigError
from .manager import DEFAULT_MAX_WORKERS
from .models import PodcastSource

PROGRAM = "podfetch"
CONFIG_FILE = "config.toml"
DIRECTORY_ENV = "PODFETCH_DIRECTORY"


@dataclass
class Config:
    """Validated configuration."""

    directory: str
    podcasts: List[PodcastSource] = field(default_factory=list)
    workers: int = DEFAULT_MAX_WORKERS


def load_config(path: str) -> Config:
    """Read and validate a configuration file.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated.
    """
    logger = logging.getLogger(__name__)
    logger.info("Loading configuration from %s", path)
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e
    return parse_config(data, path)


def parse_config(data: Dict[str, Any], path: str = "<config>") -> Config:
    """Build a Config from decoded TOML data."""
    directory = os.getenv(DIRECTORY_ENV) or data.get("directory")
    if not directory or not isinstance(directory, str):
        raise ConfigError(f"{path}: 'directory' must be a non-empty string")

    workers = data.get("workers", DEFAULT_MAX_WORKERS)
    if isinstance(workers, bool) or not isinstance(workers, int):
        raise ConfigError(f"{path}: 'workers' must be an integer")
    if workers < 1:
        raise ConfigError(f"{path}: 'workers' must be at least 1")

    raw_podcasts = data.get("podcasts", [])
    if not isinstance(raw_podcasts, list):
        raise ConfigError(f"{path}: 'podcasts' must be an array of tables")

    podcasts: List[PodcastSource] = []
    names = set()
    for index, raw in enumerate(raw_podcasts):
        source = _parse_podcast(raw, index, path)
        # Partitions and directories may not tell case apart
        key = source.name.casefold()
        if key in names:
            raise ConfigError(
                f"{path}: duplicate podcast name {source.name!r}"
            )
        names.add(key)
        podcasts.append(source)

    return Config(
        directory=expand_path(directory),
        podcasts=podcasts,
        workers=workers,
    )


def _parse_podcast(raw: Any, index: int, path: str) -> PodcastSource:
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: podcasts[{index}] must be a table")
    name = raw.get("name")
    uri = raw.get("uri")
    if not isinstance(name, str) or not isinstance(uri, str):
        raise ConfigError(
            f"{path}: podcasts[{index}] needs string 'name' and 'uri'"
        )

    episodes = raw.get("episodes", 1)
    if isinstance(episodes, str):
        # Older configs quote the number
        try:
            episodes = int(episodes.strip())
        except ValueError as e:
            raise ConfigError(
                f"{path}: podcast {name!r} has invalid episodes {episodes!r}"
            ) from e

    try:
        return PodcastSource(name=name, uri=uri, episode_limit=episodes)
    except ValueError as e:
        raise ConfigError(f"{path}: {e}") from e


def expand_path(path: str) -> str:
    """Expand ~ and environment variables in a path."""
    return os.path.expanduser(os.path.expandvars(path))


def _config_from_env(env: str, *suffix: str) -> Optional[str]:
    """Build a config path under the directory named by an env variable."""
    base = os.getenv(env)
    if not base:
        return None
    candidate = os.path.join(base, *suffix)
    return candidate if os.path.exists(candidate) else None


def _first_existing(*candidates: Optional[str]) -> Optional[str]:
    for candidate in candidates:
        if candidate and os.path.exists(candidate):
            return candidate
    return None


def _find_system_config(default_dir: str) -> Optional[str]:
    """Search XDG_DATA_DIRS, then the platform's system-wide directory."""
    data_dirs = os.getenv("XDG_DATA_DIRS", "")
    for directory in data_dirs.split(os.pathsep):
        if not directory:
            continue
        candidate = os.path.join(directory, PROGRAM, CONFIG_FILE)
        if os.path.exists(candidate):
            return candidate
    return _first_existing(os.path.join(default_dir, PROGRAM, CONFIG_FILE))


def _find_user_config(home_suffix: str) -> Optional[str]:
    """Search XDG_CONFIG_HOME, then a directory under HOME."""
    return _config_from_env(
        "XDG_CONFIG_HOME", PROGRAM, CONFIG_FILE
    ) or _config_from_env("HOME", home_suffix, PROGRAM, CONFIG_FILE)


def find_config(platform: Optional[str] = None) -> Optional[str]:
    """Locate the configuration file for the current platform.

    Search order:
        Windows: %LOCALAPPDATA%, %APPDATA%
        macOS: $XDG_CONFIG_HOME, ~/Library/Preferences, $XDG_DATA_DIRS,
            /Library/Preferences
        Others: $XDG_CONFIG_HOME, ~/.config, $XDG_DATA_DIRS, /etc/xdg

    Returns:
        Path of the first existing config file, or None.
    """
    platform = platform or sys.platform
    if platform.startswith("win"):
        return _config_from_env(
            "LOCALAPPDATA", PROGRAM, CONFIG_FILE
        ) or _config_from_env("APPDATA", PROGRAM, CONFIG_FILE)
    if platform == "darwin":
        return _find_user_config(
            os.path.join("Library", "Preferences")
        ) or _find_system_config("/Library/Preferences")
    return _find_user_config(".config") or _find_system_config("/etc/xdg")
