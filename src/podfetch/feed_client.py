"""
Feed listing: turns a podcast feed into a bounded list of entries.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import feedparser

from .downloader import fetch_feed
from .errors import FeedFault
from .models import Entry, PodcastSource
from .utils import sanitize_filename


class FeedClient:
    """Lists the newest entries of a podcast feed."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def list_entries(self, source: PodcastSource) -> List[Entry]:
        """Fetch and parse a feed, returning at most episode_limit entries.

        Entries are returned in feed order, which is assumed newest-first.

        Raises:
            TransferFault: If the feed cannot be downloaded.
            FeedFault: If the document is not a feed, or one of the selected
                entries lacks a title, enclosure or publish date.
        """
        content = fetch_feed(source.uri)
        return self.from_content(source, content)

    def from_content(
        self, source: PodcastSource, content: bytes
    ) -> List[Entry]:
        """Parse already downloaded feed content."""
        parsed = feedparser.parse(content)

        if not parsed.entries and (parsed.bozo or not parsed.get("version")):
            reason = parsed.get("bozo_exception", "unrecognized document")
            raise FeedFault(f"{source.name}: not a valid feed ({reason})")

        selected = parsed.entries[: source.episode_limit]
        entries = [
            self._to_entry(source, raw, index)
            for index, raw in enumerate(selected)
        ]

        self.logger.info(
            "Listed %d of %d entries for %s",
            len(entries),
            len(parsed.entries),
            source.name,
        )
        return entries

    def _to_entry(self, source: PodcastSource, raw: Any, index: int) -> Entry:
        title = (raw.get("title") or "").strip()
        if not sanitize_filename(title):
            raise FeedFault(f"{source.name}: entry {index} has no title")

        enclosure_uri = _enclosure_uri(raw)
        if not enclosure_uri:
            raise FeedFault(f"{source.name}: entry {title!r} has no enclosure")

        published = raw.get("published_parsed")
        if not published:
            raise FeedFault(
                f"{source.name}: entry {title!r} has no publish date"
            )

        return Entry(
            podcast_name=source.name,
            title=title,
            enclosure_uri=enclosure_uri,
            published_at=datetime(*published[:6], tzinfo=timezone.utc),
        )


def _enclosure_uri(raw: Any) -> Optional[str]:
    """Get the media link of a feed entry."""
    for enclosure in raw.get("enclosures", []):
        href = enclosure.get("href")
        if href:
            return str(href)
    for link in raw.get("links", []):
        if link.get("rel") == "enclosure" and link.get("href"):
            return str(link["href"])
    return None
