"""
Tests for listing feed entries.
"""

import unittest
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import requests

from podfetch.errors import FeedFault, TransferFault
from podfetch.feed_client import FeedClient
from tests.utils import build_rss, create_test_source, make_response


class TestFeedClient(unittest.TestCase):
    """Test suite for FeedClient."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self.client = FeedClient()
        self.rss = build_rss(
            [
                {
                    "title": "Episode Three",
                    "url": "http://test.com/ep3.mp3",
                    "pub_date": "Wed, 03 Jan 2024 10:00:00 GMT",
                },
                {"title": "Episode Two", "url": "http://test.com/ep2.mp3"},
                {"title": "Episode One", "url": "http://test.com/ep1.mp3"},
            ]
        )

    @patch("requests.get")
    def test_list_entries_bounded_by_limit(self, mock_get: Mock) -> None:
        """Only the first episode_limit entries are returned, in order."""
        mock_get.return_value = make_response(self.rss)
        source = create_test_source(name="Show", episode_limit=2)

        entries = self.client.list_entries(source)

        self.assertEqual(
            [entry.title for entry in entries],
            ["Episode Three", "Episode Two"],
        )
        first = entries[0]
        self.assertEqual(first.podcast_name, "Show")
        self.assertEqual(first.enclosure_uri, "http://test.com/ep3.mp3")
        self.assertEqual(
            first.published_at,
            datetime(2024, 1, 3, 10, 0, tzinfo=timezone.utc),
        )
        mock_get.assert_called_once_with("http://test.com/rss", timeout=30)

    @patch("requests.get")
    def test_limit_larger_than_feed(self, mock_get: Mock) -> None:
        """A limit above the feed size returns every entry."""
        mock_get.return_value = make_response(self.rss)

        entries = self.client.list_entries(
            create_test_source(episode_limit=10)
        )

        self.assertEqual(len(entries), 3)

    @patch("requests.get")
    def test_zero_limit(self, mock_get: Mock) -> None:
        """A zero limit lists nothing."""
        mock_get.return_value = make_response(self.rss)

        entries = self.client.list_entries(create_test_source(episode_limit=0))

        self.assertEqual(entries, [])

    def test_empty_feed(self) -> None:
        """A valid feed without items lists nothing."""
        entries = self.client.from_content(create_test_source(), build_rss([]))

        self.assertEqual(entries, [])

    def test_missing_enclosure_fails_listing(self) -> None:
        """An entry without an enclosure fails the whole listing."""
        content = build_rss(
            [
                {"title": "Good", "url": "http://test.com/good.mp3"},
                {"title": "No Audio", "url": None},
            ]
        )

        with self.assertRaises(FeedFault):
            self.client.from_content(
                create_test_source(episode_limit=2), content
            )

    def test_missing_title_fails_listing(self) -> None:
        """An entry without a title fails the listing."""
        content = build_rss([{"title": None, "url": "http://test.com/a.mp3"}])

        with self.assertRaises(FeedFault):
            self.client.from_content(create_test_source(), content)

    def test_missing_publish_date_fails_listing(self) -> None:
        """An entry without a publish date fails the listing."""
        content = build_rss(
            [{"title": "Undated", "url": "http://test.com/a.mp3",
              "pub_date": None}]
        )

        with self.assertRaises(FeedFault):
            self.client.from_content(create_test_source(), content)

    def test_entries_outside_limit_are_not_checked(self) -> None:
        """Malformed entries past the limit do not affect the listing."""
        content = build_rss(
            [
                {"title": "Newest", "url": "http://test.com/new.mp3"},
                {"title": "Broken", "url": None},
            ]
        )

        entries = self.client.from_content(
            create_test_source(episode_limit=1), content
        )

        self.assertEqual([entry.title for entry in entries], ["Newest"])

    def test_not_a_feed(self) -> None:
        """Content that is not a feed is a FeedFault."""
        with self.assertRaises(FeedFault):
            self.client.from_content(
                create_test_source(), b"this is not a feed at all"
            )

    def test_atom_enclosure_link(self) -> None:
        """Atom entries use their enclosure link."""
        content = b"""<?xml version="1.0" encoding="utf-8"?>
        <feed xmlns="http://www.w3.org/2005/Atom">
            <title>Atom Show</title>
            <entry>
                <title>Atom Episode</title>
                <id>urn:ep:1</id>
                <published>2024-02-01T12:00:00Z</published>
                <updated>2024-02-01T12:00:00Z</updated>
                <link rel="enclosure" type="audio/mpeg"
                      href="http://test.com/atom.m4a"/>
            </entry>
        </feed>"""

        entries = self.client.from_content(create_test_source(), content)

        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].enclosure_uri, "http://test.com/atom.m4a")
        self.assertEqual(entries[0].filename, "Atom Episode.m4a")

    @patch("requests.get")
    def test_network_error(self, mock_get: Mock) -> None:
        """A failed feed download is a TransferFault."""
        mock_get.side_effect = requests.exceptions.ConnectionError("down")

        with self.assertRaises(TransferFault):
            self.client.list_entries(create_test_source())

    @patch("requests.get")
    def test_http_error(self, mock_get: Mock) -> None:
        """An HTTP error status is a TransferFault."""
        mock_get.return_value = make_response(
            status_error=requests.exceptions.HTTPError("500")
        )

        with self.assertRaises(TransferFault):
            self.client.list_entries(create_test_source())


if __name__ == "__main__":
    unittest.main()
