"""
Directory layout for downloaded episodes.

Episodes are stored as ``<root>/<podcast name>/<episode file name>``.
"""

import logging
import os

from .errors import PathConflict, StorageFault
from .models import Entry


class FileManager:
    """Plans and prepares the download directory tree."""

    def __init__(self, data_dir: str):
        """Initialize with the destination root directory."""
        self.data_dir = data_dir
        self.logger = logging.getLogger(__name__)

    def get_podcast_dir(self, podcast_name: str) -> str:
        """Get the directory of a podcast."""
        return os.path.join(self.data_dir, podcast_name)

    def get_episode_path(self, entry: Entry) -> str:
        """Get the full path an entry is downloaded to."""
        return os.path.join(
            self.get_podcast_dir(entry.podcast_name), entry.filename
        )

    def ensure_root(self) -> str:
        """Ensure the destination root exists and return its path.

        Raises:
            PathConflict: If the root exists and is not a directory.
            StorageFault: If the root cannot be created.
        """
        self._ensure_directory(self.data_dir, parents=True)
        return self.data_dir

    def ensure_tree(self, podcast_name: str) -> str:
        """Ensure a podcast's directory exists and return its path.

        Raises:
            PathConflict: If the path exists and is not a directory.
            StorageFault: If the directory cannot be created.
        """
        podcast_dir = self.get_podcast_dir(podcast_name)
        self._ensure_directory(podcast_dir, parents=False)
        return podcast_dir

    def _ensure_directory(self, path: str, parents: bool) -> None:
        if os.path.exists(path):
            if not os.path.isdir(path):
                raise PathConflict(f"{path} exists and is not a directory")
            return
        try:
            if parents:
                os.makedirs(path, exist_ok=True)
            else:
                os.mkdir(path)
        except FileExistsError:
            # Created concurrently by another process
            if not os.path.isdir(path):
                raise PathConflict(
                    f"{path} exists and is not a directory"
                ) from None
            return
        except OSError as e:
            raise StorageFault(
                f"Failed to create directory {path}: {e}"
            ) from e
        self.logger.info("Created directory %s", path)
