"""
Command-line interface for the podcast fetcher.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .config import expand_path, find_config, load_config
from .errors import ConfigError, PathConflict, StorageFault
from .factory import create_manager
from .models import Outcome, RunSummary
from .utils import format_bytes


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="podfetch",
        description="Download new podcast episodes from RSS feeds",
    )
    parser.add_argument(
        "-c", "--config", metavar="FILE", help="Sets a custom config file"
    )
    parser.add_argument(
        "-d",
        "--directory",
        help="Download directory (overrides the config file)",
    )
    parser.add_argument(
        "-w",
        "--workers",
        type=_positive_int,
        help="Number of concurrent downloads",
    )
    parser.add_argument(
        "--no-progress", action="store_true", help="Disable progress bars"
    )
    parser.add_argument(
        "--list-only",
        action="store_true",
        help="List new episodes without downloading",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    verbosity.add_argument(
        "-q", "--quiet", action="store_true", help="Only log warnings"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging on stderr."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def print_summary(summary: RunSummary) -> None:
    """Print per-entry status lines and the run totals."""
    for item in summary.items:
        entry = item.entry
        line = f"[{item.outcome.value}] {entry.podcast_name}: {entry.title}"
        if item.outcome is Outcome.FAILED:
            line += f" - {item.error}"
        print(line)

    for failure in summary.podcast_failures:
        print(
            f"[{failure.stage} failed] {failure.podcast_name}: "
            f"{failure.error}"
        )

    total_bytes = sum(
        os.path.getsize(item.file_path)
        for item in summary.items
        if item.file_path and os.path.exists(item.file_path)
    )
    print("\nDownload complete:")
    print(f"  Successfully downloaded: {summary.downloaded}")
    print(f"  Already downloaded (skipped): {summary.skipped}")
    print(f"  Failed downloads: {summary.failed}")
    print(f"  Podcasts not processed: {len(summary.podcast_failures)}")
    print(f"  Total downloaded size: {format_bytes(total_bytes)}")


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point for the podcast fetcher."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.quiet)

    try:
        config_path = args.config or find_config()
        if not config_path:
            print(
                "Error: no config file found, use --config to specify one",
                file=sys.stderr,
            )
            sys.exit(1)

        config = load_config(config_path)
        if args.directory:
            config.directory = expand_path(args.directory)
        if not config.podcasts:
            print("No podcasts configured")
            return

        print(f"Using download directory: {config.directory}")
        manager = create_manager(
            config,
            show_progress=not args.no_progress,
            max_workers=args.workers,
        )

        with manager.episode_log:
            if args.list_only:
                entries, failures = manager.prepare(
                    config.podcasts, setup=False
                )
                new_entries = manager.pending_entries(entries)
                print(f"Found {len(new_entries)} new episodes")
                for i, entry in enumerate(new_entries, 1):
                    print(f"  {i}. {entry.podcast_name}: {entry.title}")
                failed_names = {failure.podcast_name for failure in failures}
                for source in config.podcasts:
                    if source.name in failed_names:
                        continue
                    logged = 0
                    if manager.episode_log.has_partition(source.name):
                        logged = len(
                            manager.episode_log.claimed_titles(source.name)
                        )
                    print(f"{source.name}: {logged} episodes in log")
                for failure in failures:
                    print(
                        f"[{failure.stage} failed] {failure.podcast_name}: "
                        f"{failure.error}"
                    )
                return

            summary = manager.run(config.podcasts)
        print_summary(summary)

    except KeyboardInterrupt:
        print("\nDownload interrupted by user", file=sys.stderr)
        sys.exit(130)
    except (ConfigError, PathConflict, StorageFault) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
