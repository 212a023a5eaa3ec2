"""
Batch scan-and-tag operations.

Reads tags for every audio file in a folder on a bounded thread pool and
hands back Tracks in the original scan order. A bad file is logged and
skipped; it never aborts the batch.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from loguru import logger

from audio_tagger.exceptions import NotReadable, ScanCancelled

from .metadata import MetadataReader, TagExtractor
from .models import FileEntry, Track
from .scanner import scan_directory

DEFAULT_MAX_WORKERS = 4
DEFAULT_READ_TIMEOUT = 10.0
_POLL_INTERVAL = 0.1

ProgressCallback = Callable[[int, int, FileEntry], None]


def _read_track(
    index: int,
    entry: FileEntry,
    reader: MetadataReader,
    cancel_event: threading.Event,
    started: dict[int, float],
) -> Optional[Track]:
    if cancel_event.is_set():
        return None
    started[index] = time.monotonic()
    metadata = reader.extract(entry.path)
    return Track.from_file(entry.path, metadata)


def _await_result(
    future: Future,
    index: int,
    started: dict[int, float],
    timeout: float,
    cancel_event: threading.Event,
) -> Optional[Track]:
    """Wait for one file, waking up regularly to honour cancellation.

    The timeout only counts from the moment a worker picked the file up, so
    files queued behind a slow one are not charged for the wait.
    """
    while True:
        if cancel_event.is_set():
            raise ScanCancelled("Scan aborted")
        try:
            return future.result(timeout=_POLL_INTERVAL)
        except FutureTimeoutError:
            started_at = started.get(index)
            if started_at is not None and time.monotonic() - started_at >= timeout:
                raise


def tag_files(
    entries: Sequence[FileEntry],
    reader: Optional[MetadataReader] = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
    read_timeout: float = DEFAULT_READ_TIMEOUT,
    cancel_event: Optional[threading.Event] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> list[Track]:
    """Extract metadata for many files in parallel.

    Args:
        entries: Files to tag, in the order the result should follow
        reader: Metadata reader (default: Mutagen TagExtractor)
        max_workers: Upper bound on concurrent reads
        read_timeout: Seconds to wait for a single file before skipping it
        cancel_event: Checked between files; when set the batch stops
        progress_callback: Called as (done, total, entry) after each file

    Returns:
        Tracks for every readable file, in input order

    Raises:
        ScanCancelled: If cancel_event was set before the batch finished
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")

    reader = reader or TagExtractor()
    cancel_event = cancel_event or threading.Event()
    total = len(entries)
    tracks: list[Track] = []
    skipped = 0

    if not entries:
        return tracks

    started: dict[int, float] = {}
    futures: list[Optional[Future]] = [None] * total
    executors: list[ThreadPoolExecutor] = []

    def submit_all(indexes: list[int]) -> None:
        executor = ThreadPoolExecutor(
            max_workers=min(max_workers, len(indexes)), thread_name_prefix="tagger"
        )
        executors.append(executor)
        for i in indexes:
            futures[i] = executor.submit(
                _read_track, i, entries[i], reader, cancel_event, started
            )

    try:
        submit_all(list(range(total)))

        for index, entry in enumerate(entries):
            try:
                track = _await_result(
                    futures[index], index, started, read_timeout, cancel_event
                )
            except NotReadable as e:
                logger.warning(f"Skipping unreadable file: {e}")
                skipped += 1
                track = None
            except FutureTimeoutError:
                logger.warning(
                    f"Skipping {entry.path}: no result after {read_timeout:.1f}s"
                )
                skipped += 1
                track = None
                # The stuck read keeps its worker; move queued files to a new pool
                queued = [i for i in range(index + 1, total) if futures[i].cancel()]
                if queued:
                    submit_all(queued)

            if track is not None:
                tracks.append(track)
            if progress_callback:
                progress_callback(index + 1, total, entry)
    except ScanCancelled:
        logger.info(f"Scan cancelled; discarding {len(tracks)} partial results")
        raise
    finally:
        for executor in executors:
            executor.shutdown(wait=False, cancel_futures=True)

    logger.info(f"Tagged {len(tracks)} of {total} files ({skipped} skipped)")
    return tracks


def load_from_directory(
    directory: str | Path,
    reader: Optional[MetadataReader] = None,
    supported_extensions: Optional[Iterable[str]] = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
    read_timeout: float = DEFAULT_READ_TIMEOUT,
    cancel_event: Optional[threading.Event] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> list[Track]:
    """Scan one folder for audio files and tag them, keeping scan order.

    Raises:
        DirectoryNotFound: If directory does not exist
        ScanCancelled: If cancel_event was set before the batch finished
    """
    entries = scan_directory(
        directory, audio_only=True, supported_extensions=supported_extensions
    )
    return tag_files(
        entries,
        reader=reader,
        max_workers=max_workers,
        read_timeout=read_timeout,
        cancel_event=cancel_event,
        progress_callback=progress_callback,
    )
