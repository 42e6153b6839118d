"""
Download service for single podcast episodes.
"""

import logging

from .downloader import download_file_to_path
from .file_manager import FileManager
from .models import Entry


class EpisodeDownloader:
    """Service for downloading one entry to its planned path."""

    def __init__(self, file_manager: FileManager, show_progress: bool = True):
        """Initialize with the file manager that plans target paths."""
        self.file_manager = file_manager
        self.show_progress = show_progress
        self.logger = logging.getLogger(__name__)

    def download(self, entry: Entry) -> str:
        """Download an entry and return the written file path.

        Raises:
            TransferFault: On network or HTTP failure.
            FileFault: If the target file exists or cannot be written.
        """
        target_path = self.file_manager.get_episode_path(entry)
        self.logger.debug(
            "Downloading episode %r of %s to %s",
            entry.title,
            entry.podcast_name,
            target_path,
        )
        download_file_to_path(
            entry.enclosure_uri, target_path, self.show_progress
        )
        return target_path
