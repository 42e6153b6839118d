"""
Exception hierarchy for the podcast fetcher.
"""


class PodfetchError(Exception):
    """Base exception for all podfetch errors."""


class ConfigError(PodfetchError):
    """Configuration file missing, unreadable or invalid."""


class StorageFault(PodfetchError):
    """Episode log or directory storage failure."""


class DuplicateClaim(PodfetchError):
    """Episode already present in the episode log."""


class FeedFault(PodfetchError):
    """Feed document is malformed or an entry lacks a required field."""


class TransferFault(PodfetchError):
    """Network or HTTP failure while fetching a feed or an enclosure."""


class FileFault(PodfetchError):
    """Episode file could not be created or written."""


class PathConflict(PodfetchError):
    """Destination path exists but is not a directory."""
