"""
Small helpers shared by the fetcher modules.
"""

import posixpath
import re
from urllib.parse import unquote, urlparse

# Characters that are invalid in file names on at least one supported OS
_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_filename(name: str) -> str:
    """Make a string safe to use as a single file name component."""
    sanitized = _UNSAFE_FILENAME_CHARS.sub("_", name)
    # Windows drops trailing dots and spaces silently
    sanitized = sanitized.strip().rstrip(". ")
    return sanitized


def validate_podcast_name(name: str) -> str:
    """Return name unchanged if it is usable as a directory and log key.

    Raises:
        ValueError: If the name is empty, a relative path marker, or
            contains a path separator or control character.
    """
    if not name or not name.strip():
        raise ValueError("podcast name must not be empty")
    if name in (".", ".."):
        raise ValueError(f"podcast name {name!r} is not allowed")
    if "/" in name or "\\" in name:
        raise ValueError(
            f"podcast name {name!r} must not contain a path separator"
        )
    if _CONTROL_CHARS.search(name):
        raise ValueError(
            f"podcast name {name!r} must not contain control characters"
        )
    return name


def extension_from_uri(uri: str) -> str:
    """Get the extension of the last path segment of a URI, without the dot.

    Query strings and fragments are ignored. Returns an empty string when the
    last segment has no extension.
    """
    path = unquote(urlparse(uri).path)
    basename = posixpath.basename(path)
    if "." not in basename:
        return ""
    extension = basename.rsplit(".", 1)[1]
    return sanitize_filename(extension)


def format_bytes(size: float) -> str:
    """Format a byte count as a human readable string."""
    for unit in ("B", "KB", "MB", "GB"):
        if abs(size) < 1024:
            return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024
    return f"{size:.1f} TB"
