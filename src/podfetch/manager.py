"""
Main orchestration of the fetch, claim and download pipeline.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Tuple

from tqdm import tqdm

from .episode_downloader import EpisodeDownloader
from .episode_log import EpisodeLog
from .errors import (
    FeedFault,
    FileFault,
    PathConflict,
    PodfetchError,
    StorageFault,
    TransferFault,
)
from .feed_client import FeedClient
from .file_manager import FileManager
from .models import (
    Entry,
    Outcome,
    PodcastFailure,
    PodcastSource,
    RunSummary,
    WorkItem,
)

DEFAULT_MAX_WORKERS = 4


class DownloadManager:
    """
    Orchestrates podcast setup, feed listing and concurrent episode
    downloads, deduplicated through the episode log.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        episode_log: EpisodeLog,
        feed_client: FeedClient,
        file_manager: FileManager,
        downloader: EpisodeDownloader,
        max_workers: int = DEFAULT_MAX_WORKERS,
        show_progress: bool = True,
    ):
        """Initialize with dependencies."""
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.logger = logging.getLogger(__name__)
        self.episode_log = episode_log
        self.feed_client = feed_client
        self.file_manager = file_manager
        self.downloader = downloader
        self.max_workers = max_workers
        self.show_progress = show_progress

    def run(self, sources: Iterable[PodcastSource]) -> RunSummary:
        """Set up, list and download every configured podcast."""
        entries, podcast_failures = self.prepare(sources)
        items = self.dispatch(entries)
        summary = RunSummary(items=items, podcast_failures=podcast_failures)
        self.logger.info(
            "Run finished: %d downloaded, %d skipped, %d failed, "
            "%d podcasts dropped",
            summary.downloaded,
            summary.skipped,
            summary.failed,
            len(podcast_failures),
        )
        return summary

    def prepare(
        self, sources: Iterable[PodcastSource], setup: bool = True
    ) -> Tuple[List[Entry], List[PodcastFailure]]:
        """Prepare storage for each podcast and list their entries.

        A podcast whose setup or listing fails is dropped and reported;
        the other podcasts are unaffected. With setup=False no partition
        or directory is created and only the listing runs.
        """
        failures: List[PodcastFailure] = []
        ready: List[PodcastSource] = []

        for source in sources:
            if not setup:
                ready.append(source)
                continue
            try:
                self.episode_log.ensure_partition(source.name)
                self.file_manager.ensure_tree(source.name)
            except (StorageFault, PathConflict) as e:
                self.logger.error("Skipping podcast %s: %s", source.name, e)
                failures.append(PodcastFailure(source.name, "setup", e))
                continue
            ready.append(source)

        entries: List[Entry] = []
        if not ready:
            return entries, failures

        with ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(ready)),
            thread_name_prefix="podfetch-list",
        ) as executor:
            listings: Dict[Future[List[Entry]], PodcastSource] = {
                executor.submit(self.feed_client.list_entries, source): source
                for source in ready
            }
            for future in as_completed(listings):
                source = listings[future]
                try:
                    entries.extend(future.result())
                except (FeedFault, TransferFault) as e:
                    self.logger.error(
                        "Could not list podcast %s: %s", source.name, e
                    )
                    failures.append(PodcastFailure(source.name, "listing", e))

        return entries, failures

    def dispatch(self, entries: List[Entry]) -> List[WorkItem]:
        """Claim and download entries on a bounded worker pool.

        Every entry is claimed in the episode log before its download
        starts. An entry that is already claimed is skipped. A failed
        download keeps its claim.
        """
        items = [WorkItem(entry) for entry in entries]
        if not items:
            self.logger.info("No entries to download")
            return items

        self.logger.info(
            "Dispatching %d entries to %d workers",
            len(items),
            self.max_workers,
        )
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="podfetch"
        )
        interrupted = False
        try:
            futures = [executor.submit(self._process, item) for item in items]
            with tqdm(
                total=len(items),
                unit="ep",
                desc="Downloading Episodes",
                disable=not self.show_progress,
            ) as progress_bar:
                for future in as_completed(futures):
                    self._log_outcome(future.result())
                    progress_bar.update(1)
        except KeyboardInterrupt:
            interrupted = True
            self.logger.warning("Interrupted, cancelling pending downloads")
            raise
        finally:
            # Unstarted entries are never claimed once dispatch is aborted
            executor.shutdown(wait=not interrupted, cancel_futures=True)
        return items

    def pending_entries(self, entries: Iterable[Entry]) -> List[Entry]:
        """Filter entries that are not in the episode log yet.

        Entries of a podcast without a partition are all pending.
        """
        partitions: Dict[str, bool] = {}
        pending: List[Entry] = []
        for entry in entries:
            name = entry.podcast_name
            if name not in partitions:
                partitions[name] = self.episode_log.has_partition(name)
            if not partitions[name] or not self.episode_log.exists(
                name, entry.title
            ):
                pending.append(entry)
        return pending

    def _process(self, item: WorkItem) -> WorkItem:
        """Claim and download a single entry."""
        entry = item.entry
        try:
            claimed = self.episode_log.try_claim(
                entry.podcast_name, entry.title
            )
        except StorageFault as e:
            item.mark_failed(e)
            return item

        if not claimed:
            item.mark_skipped()
            return item

        item.mark_claimed()
        try:
            file_path = self.downloader.download(entry)
        except (TransferFault, FileFault) as e:
            item.mark_failed(e)
            return item
        except Exception as e:  # pylint: disable=broad-exception-caught
            self.logger.exception(
                "Unexpected error downloading %s - %s",
                entry.podcast_name,
                entry.title,
            )
            error = PodfetchError(f"Unexpected download error: {e}")
            error.__cause__ = e
            item.mark_failed(error)
            return item

        item.mark_downloaded(file_path)
        return item

    def _log_outcome(self, item: WorkItem) -> None:
        entry = item.entry
        if item.outcome is Outcome.DOWNLOADED:
            self.logger.info(
                "Downloaded: %s - %s", entry.podcast_name, entry.title
            )
        elif item.outcome is Outcome.SKIPPED:
            self.logger.info(
                "Skipped (already claimed): %s - %s",
                entry.podcast_name,
                entry.title,
            )
        else:
            self.logger.error(
                "Failed: %s - %s - %s",
                entry.podcast_name,
                entry.title,
                item.error,
            )
