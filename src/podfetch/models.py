"""
Data models for podcast sources, feed entries and download work items.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .errors import PodfetchError
from .utils import extension_from_uri, sanitize_filename, validate_podcast_name


@dataclass(frozen=True)
class PodcastSource:
    """A podcast feed to fetch, as supplied by the configuration.

    The name identifies the podcast: it names the output directory and the
    episode log partition.
    """

    name: str
    uri: str
    episode_limit: int = 1

    def __post_init__(self) -> None:
        validate_podcast_name(self.name)
        if not self.uri:
            raise ValueError(f"podcast {self.name!r} has no feed uri")
        if isinstance(self.episode_limit, bool) or not isinstance(
            self.episode_limit, int
        ):
            raise ValueError(
                f"episode limit for {self.name!r} must be an integer"
            )
        if self.episode_limit < 0:
            raise ValueError(
                f"episode limit for {self.name!r} must not be negative"
            )


@dataclass(frozen=True)
class Entry:
    """A single episode listed from a feed."""

    podcast_name: str
    title: str
    enclosure_uri: str
    published_at: datetime

    @property
    def extension(self) -> str:
        """File extension taken from the enclosure URI, without the dot."""
        return extension_from_uri(self.enclosure_uri)

    @property
    def filename(self) -> str:
        """File name of the downloaded episode."""
        stem = sanitize_filename(self.title)
        if self.extension:
            return f"{stem}.{self.extension}"
        return stem


class Outcome(Enum):
    """Processing state of a work item."""

    PENDING = "pending"
    CLAIMED = "claimed"
    SKIPPED = "skipped"
    DOWNLOADED = "downloaded"
    FAILED = "failed"


_TRANSITIONS = {
    Outcome.PENDING: {Outcome.CLAIMED, Outcome.SKIPPED, Outcome.FAILED},
    Outcome.CLAIMED: {Outcome.DOWNLOADED, Outcome.FAILED},
}


@dataclass
class WorkItem:
    """Tracks one entry through claim and download.

    A work item is owned by the worker processing it until it reaches a
    terminal outcome.
    """

    entry: Entry
    outcome: Outcome = Outcome.PENDING
    error: Optional[PodfetchError] = None
    file_path: Optional[str] = None

    def _transition(self, outcome: Outcome) -> None:
        if outcome not in _TRANSITIONS.get(self.outcome, set()):
            raise ValueError(
                f"invalid transition {self.outcome.value} -> {outcome.value} "
                f"for {self.entry.title!r}"
            )
        self.outcome = outcome

    def mark_claimed(self) -> None:
        self._transition(Outcome.CLAIMED)

    def mark_skipped(self) -> None:
        self._transition(Outcome.SKIPPED)

    def mark_downloaded(self, file_path: str) -> None:
        self._transition(Outcome.DOWNLOADED)
        self.file_path = file_path

    def mark_failed(self, error: PodfetchError) -> None:
        self._transition(Outcome.FAILED)
        self.error = error


@dataclass(frozen=True)
class PodcastFailure:
    """A podcast dropped from the run before its entries were dispatched."""

    podcast_name: str
    stage: str  # "setup" or "listing"
    error: PodfetchError


@dataclass
class RunSummary:
    """Outcomes of a complete run."""

    items: list[WorkItem] = field(default_factory=list)
    podcast_failures: list[PodcastFailure] = field(default_factory=list)

    def _count(self, outcome: Outcome) -> int:
        return sum(1 for item in self.items if item.outcome is outcome)

    @property
    def downloaded(self) -> int:
        return self._count(Outcome.DOWNLOADED)

    @property
    def skipped(self) -> int:
        return self._count(Outcome.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(Outcome.FAILED)
