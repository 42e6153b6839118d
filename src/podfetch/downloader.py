"""
HTTP transfer functions for feed documents and episode enclosures.
"""

import logging
import os
from typing import Mapping, Optional

import requests
from tqdm import tqdm

from .errors import FileFault, TransferFault

REQUEST_TIMEOUT = 30
CHUNK_SIZE = 8192


def fetch_feed(feed_uri: str) -> bytes:
    """Download a feed document.

    Raises:
        TransferFault: On network or HTTP errors, or an empty response.
    """
    logger = logging.getLogger(__name__)
    logger.info("Downloading feed from %s", feed_uri)
    try:
        response = requests.get(feed_uri, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise TransferFault(f"Feed download failed for {feed_uri}: {e}") from e
    if not response.content:
        raise TransferFault(f"Feed download from {feed_uri} was empty")
    logger.debug(
        "Downloaded feed %s (%d bytes)", feed_uri, len(response.content)
    )
    return response.content


def parse_content_length(headers: Mapping[str, str]) -> Optional[int]:
    """Return the declared body size, or None if it is missing or invalid."""
    value = headers.get("content-length")
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length > 0 else None


def download_file_to_path(
    file_url: str, output_path: str, show_progress: bool = True
) -> int:
    """Stream a URL into a new file at output_path.

    The file must not already exist. A partially written file is removed if
    the transfer fails.

    Returns:
        Number of bytes written.

    Raises:
        FileFault: If the file exists or cannot be written.
        TransferFault: On network or HTTP errors.
    """
    logger = logging.getLogger(__name__)
    output_filename = os.path.basename(output_path)

    try:
        # Exclusive create, existing episodes are never overwritten
        output_file = open(output_path, "xb")
    except FileExistsError as e:
        raise FileFault(f"File already exists: {output_path}") from e
    except OSError as e:
        raise FileFault(f"Cannot create {output_path}: {e}") from e

    logger.info("Downloading %s from %s", output_filename, file_url)
    written = 0
    try:
        with output_file, requests.get(
            file_url, stream=True, timeout=REQUEST_TIMEOUT
        ) as response:
            response.raise_for_status()

            content_length = parse_content_length(response.headers)
            logger.debug("Content length: %s bytes", content_length)

            with tqdm(
                total=content_length,
                unit="B",
                unit_scale=True,
                desc=output_filename[:40],
                leave=False,
                disable=not show_progress,
            ) as progress_bar:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:  # Filter out keep-alive chunks
                        output_file.write(chunk)
                        written += len(chunk)
                        progress_bar.update(len(chunk))
    except requests.exceptions.RequestException as e:
        _remove_partial(output_path)
        raise TransferFault(f"Download failed for {file_url}: {e}") from e
    except OSError as e:
        _remove_partial(output_path)
        raise FileFault(f"Cannot write {output_path}: {e}") from e
    except BaseException:
        _remove_partial(output_path)
        raise

    logger.info("Download complete: %s (%d bytes)", output_filename, written)
    return written


def _remove_partial(path: str) -> None:
    logger = logging.getLogger(__name__)
    try:
        os.remove(path)
        logger.debug("Cleaned up partial file: %s", path)
    except OSError as e:
        logger.warning("Could not remove partial file %s: %s", path, e)
