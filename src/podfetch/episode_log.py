"""
Persistent log of claimed episodes, one partition per podcast.

The log is a single SQLite file holding one table per podcast. A row's
presence means the episode was claimed for download and must not be
downloaded again.
"""

import logging
import sqlite3
import threading
from types import TracebackType
from typing import List, Optional, Type

from .errors import DuplicateClaim, StorageFault

DATABASE_NAME = "PodcastLibrary.db"


def quote_identifier(name: str) -> str:
    """Quote a podcast name for use as an SQLite table name."""
    if "\x00" in name:
        raise StorageFault(f"Invalid partition name: {name!r}")
    return '"' + name.replace('"', '""') + '"'


class EpisodeLog:
    """Thread-safe episode ledger backed by SQLite.

    All statements run on one connection guarded by a lock, so callers on
    different threads never interleave on the handle. Each statement commits
    on its own.
    """

    def __init__(self, path: str = DATABASE_NAME):
        """Open (and create if needed) the log at path."""
        self.path = path
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._partitions: set[str] = set()
        try:
            self._conn = sqlite3.connect(
                path, check_same_thread=False, isolation_level=None
            )
            # Forces SQLite to read the header of an existing file
            self._conn.execute("SELECT count(*) FROM sqlite_master")
        except sqlite3.Error as e:
            raise StorageFault(
                f"Failed to open episode log {path}: {e}"
            ) from e
        self.logger.debug("Opened episode log %s", path)

    def __enter__(self) -> "EpisodeLog":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()

    def ensure_partition(self, podcast_name: str) -> None:
        """Create the partition for a podcast if it does not exist.

        SQLite matches table names without regard to ASCII case, so a name
        that differs from an existing partition only by case is refused
        instead of sharing that partition.
        """
        table = quote_identifier(podcast_name)
        with self._lock:
            if podcast_name in self._partitions:
                return
            try:
                row = self._conn.execute(
                    "SELECT name FROM sqlite_master "
                    "WHERE type = 'table' AND name = ? COLLATE NOCASE",
                    (podcast_name,),
                ).fetchone()
                if row is not None and row[0] != podcast_name:
                    raise StorageFault(
                        f"Partition for {podcast_name!r} collides with "
                        f"existing partition {row[0]!r}"
                    )
                self._conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {table} "
                    "(episode TEXT PRIMARY KEY NOT NULL)"
                )
            except sqlite3.Error as e:
                raise StorageFault(
                    f"Failed to create partition for {podcast_name}: {e}"
                ) from e
            self._partitions.add(podcast_name)
        self.logger.debug("Partition ready: %s", podcast_name)

    def has_partition(self, podcast_name: str) -> bool:
        """Check whether a podcast's partition exists, without creating it."""
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT EXISTS(SELECT 1 FROM sqlite_master "
                    "WHERE type = 'table' AND name = ?)",
                    (podcast_name,),
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageFault(
                    f"Failed to look up partition {podcast_name}: {e}"
                ) from e
        return bool(row[0])

    def exists(self, podcast_name: str, title: str) -> bool:
        """Check whether an episode has been claimed."""
        table = quote_identifier(podcast_name)
        with self._lock:
            try:
                row = self._conn.execute(
                    f"SELECT EXISTS(SELECT 1 FROM {table} WHERE episode = ?)",
                    (title,),
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageFault(
                    f"Failed to look up {title!r} in {podcast_name}: {e}"
                ) from e
        return bool(row[0])

    def claim(self, podcast_name: str, title: str) -> None:
        """Record an episode, failing if it is already recorded.

        Raises:
            DuplicateClaim: If the episode is already in the log.
            StorageFault: On any other storage error.
        """
        table = quote_identifier(podcast_name)
        with self._lock:
            try:
                self._conn.execute(
                    f"INSERT INTO {table} (episode) VALUES (?)", (title,)
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateClaim(
                    f"{title!r} already claimed in {podcast_name}"
                ) from e
            except sqlite3.Error as e:
                raise StorageFault(
                    f"Failed to claim {title!r} in {podcast_name}: {e}"
                ) from e

    def try_claim(self, podcast_name: str, title: str) -> bool:
        """Atomically claim an episode.

        Returns:
            True if this call recorded the episode, False if it was already
            present.
        """
        table = quote_identifier(podcast_name)
        with self._lock:
            try:
                cursor = self._conn.execute(
                    f"INSERT OR IGNORE INTO {table} (episode) VALUES (?)",
                    (title,),
                )
            except sqlite3.Error as e:
                raise StorageFault(
                    f"Failed to claim {title!r} in {podcast_name}: {e}"
                ) from e
            return cursor.rowcount == 1

    def claimed_titles(self, podcast_name: str) -> List[str]:
        """List every claimed episode title of a podcast."""
        table = quote_identifier(podcast_name)
        with self._lock:
            try:
                rows = self._conn.execute(
                    f"SELECT episode FROM {table} ORDER BY episode"
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageFault(
                    f"Failed to list claims for {podcast_name}: {e}"
                ) from e
        return [row[0] for row in rows]
