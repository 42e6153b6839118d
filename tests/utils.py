"""
Factories and fakes shared by the test suite.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import requests

from podfetch.models import Entry, PodcastSource


def create_test_source(**overrides: Any) -> PodcastSource:
    """Create a PodcastSource with defaults that can be overridden."""
    defaults: Dict[str, Any] = {
        "name": "Test Podcast",
        "uri": "http://test.com/rss",
        "episode_limit": 1,
    }
    defaults.update(overrides)
    return PodcastSource(**defaults)


def create_test_entry(**overrides: Any) -> Entry:
    """Create an Entry with defaults that can be overridden."""
    defaults: Dict[str, Any] = {
        "podcast_name": "Test Podcast",
        "title": "Test Episode",
        "enclosure_uri": "http://test.com/test.mp3",
        "published_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    defaults.update(overrides)
    return Entry(**defaults)


def build_rss(
    items: List[Dict[str, Optional[str]]], title: str = "Test Podcast"
) -> bytes:
    """Build an RSS 2.0 document.

    Each item may define "title", "url" and "pub_date"; a key set to None
    leaves the element out.
    """
    parts = []
    for item in items:
        elements = []
        if item.get("title") is not None:
            elements.append(f"<title>{item['title']}</title>")
        if item.get("url") is not None:
            elements.append(
                f'<enclosure url="{item["url"]}" type="audio/mpeg" '
                'length="1000"/>'
            )
        if item.get("pub_date", "") is not None:
            pub_date = item.get("pub_date") or "Mon, 01 Jan 2024 00:00:00 GMT"
            elements.append(f"<pubDate>{pub_date}</pubDate>")
        parts.append("<item>" + "".join(elements) + "</item>")

    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel>'
        f"<title>{title}</title>" + "".join(parts) + "</channel></rss>"
    ).encode("utf-8")


def make_response(
    content: bytes = b"",
    status_error: Optional[Exception] = None,
    headers: Optional[Dict[str, str]] = None,
) -> MagicMock:
    """Create a fake requests response usable with and without `with`."""
    response = MagicMock()
    response.content = content
    if headers is None:
        headers = {"content-length": str(len(content))}
    response.headers = headers
    response.iter_content.return_value = [content] if content else []
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    else:
        response.raise_for_status.return_value = None
    response.__enter__.return_value = response
    response.__exit__.return_value = None
    return response


class FakeWeb:
    """Routes patched requests.get calls to canned responses by URL."""

    def __init__(self) -> None:
        self.routes: Dict[str, Any] = {}
        self.headers: Dict[str, Dict[str, str]] = {}
        self.calls: List[str] = []

    def add(
        self,
        url: str,
        content: bytes,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.routes[url] = content
        if headers is not None:
            self.headers[url] = headers

    def fail(self, url: str, error: Optional[Exception] = None) -> None:
        self.routes[url] = error or requests.exceptions.ConnectionError(
            f"cannot reach {url}"
        )

    def get(self, url: str, **_kwargs: Any) -> MagicMock:
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            return make_response(
                status_error=requests.exceptions.HTTPError("404 Not Found")
            )
        if isinstance(route, Exception):
            raise route
        return make_response(route, headers=self.headers.get(url))
