"""
Podcast fetcher - downloads new episodes from many RSS feeds concurrently,
remembering what was already fetched in a persistent episode log.

The package is split into a feed client, a directory planner, an episode
downloader, the episode log and an orchestrator tying them together.
"""

__version__ = "0.1.0"

from .episode_log import EpisodeLog
from .factory import create_manager
from .manager import DownloadManager
from .models import Entry, Outcome, PodcastSource, RunSummary, WorkItem

__all__ = [
    "create_manager",
    "DownloadManager",
    "EpisodeLog",
    "Entry",
    "Outcome",
    "PodcastSource",
    "RunSummary",
    "WorkItem",
]
