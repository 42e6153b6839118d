"""
Factory functions for creating DownloadManager instances.

This module wires up the episode log, feed client, file manager and
downloader from a configuration.
"""

import logging
from typing import Optional

from .config import Config
from .episode_downloader import EpisodeDownloader
from .episode_log import DATABASE_NAME, EpisodeLog
from .feed_client import FeedClient
from .file_manager import FileManager
from .manager import DownloadManager


def create_manager(
    config: Config,
    database_path: str = DATABASE_NAME,
    show_progress: bool = True,
    max_workers: Optional[int] = None,
) -> DownloadManager:
    """Create a DownloadManager ready to run.

    Raises:
        StorageFault: If the episode log cannot be opened or the
            destination root cannot be created.
        PathConflict: If the destination root is not a directory.
    """
    logger = logging.getLogger(__name__)

    file_manager = FileManager(config.directory)
    file_manager.ensure_root()

    episode_log = EpisodeLog(database_path)
    downloader = EpisodeDownloader(file_manager, show_progress=show_progress)

    manager = DownloadManager(
        episode_log=episode_log,
        feed_client=FeedClient(),
        file_manager=file_manager,
        downloader=downloader,
        max_workers=max_workers or config.workers,
        show_progress=show_progress,
    )
    logger.info(
        "Created DownloadManager for %d podcasts into %s",
        len(config.podcasts),
        config.directory,
    )
    return manager
