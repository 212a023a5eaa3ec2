"""
Directory listing for the music library.

Lists the immediate children of one folder (no recursion), sorted by
filename using plain code-point order, so "B.mp3" sorts before "a.mp3".
"""

from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from audio_tagger.core.config import DEFAULT_EXTENSIONS
from audio_tagger.exceptions import DirectoryNotFound

from .models import FileEntry

SUPPORTED_EXTENSIONS = frozenset(DEFAULT_EXTENSIONS)


def is_supported_format(
    filename: str, supported_extensions: Optional[Iterable[str]] = None
) -> bool:
    """Check if file extension is in the supported audio set (case-insensitive)."""
    extensions = (
        SUPPORTED_EXTENSIONS
        if supported_extensions is None
        else {ext.lower().lstrip(".") for ext in supported_extensions}
    )
    return Path(filename).suffix.lower().lstrip(".") in extensions


def _file_entry(path: Path, supported_extensions: Optional[Iterable[str]]) -> FileEntry:
    stat = path.stat()
    return FileEntry(
        filename=path.name,
        path=str(path.resolve()),
        size=stat.st_size,
        extension=path.suffix[1:],
        is_audio=is_supported_format(path.name, supported_extensions),
        modified=stat.st_mtime,
    )


def scan_directory(
    directory: str | Path,
    audio_only: bool = False,
    supported_extensions: Optional[Iterable[str]] = None,
) -> list[FileEntry]:
    """List regular files directly inside a directory.

    Args:
        directory: Directory to list
        audio_only: Only return files with a supported audio extension
        supported_extensions: Override the default extension set

    Returns:
        FileEntry list sorted by filename ascending

    Raises:
        DirectoryNotFound: If directory does not exist or is not a directory
    """
    path = Path(directory).expanduser()
    if not path.is_dir():
        raise DirectoryNotFound(str(directory))

    if supported_extensions is not None:
        supported_extensions = list(supported_extensions)

    entries = []
    for child in sorted(path.iterdir(), key=lambda p: p.name):
        try:
            if not child.is_file():
                continue
            entry = _file_entry(child, supported_extensions)
        except OSError as e:
            # File vanished or became unreadable between listing and stat
            logger.warning(f"Skipping {child}: {e}")
            continue

        if audio_only and not entry.is_audio:
            continue
        entries.append(entry)

    logger.debug(
        f"Scanned {path}: {len(entries)} {'audio ' if audio_only else ''}files"
    )
    return entries


def list_audio_files(
    directory: str | Path, supported_extensions: Optional[Iterable[str]] = None
) -> list[FileEntry]:
    """Shortcut for scan_directory(directory, audio_only=True)."""
    return scan_directory(
        directory, audio_only=True, supported_extensions=supported_extensions
    )
