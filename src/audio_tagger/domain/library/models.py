"""
Music library domain models.

Contains data structures for representing audio files, their metadata and
catalogued tracks.
"""

import dataclasses
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, NamedTuple, Optional

from audio_tagger.exceptions import NotReadable


def format_duration(seconds: float) -> str:
    """Format duration in seconds as MM:SS."""
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


def format_size(bytes_size: float) -> str:
    """Format file size in bytes to human readable string."""
    units = ["B", "KB", "MB", "GB"]
    unit_index = 0
    size = float(bytes_size)
    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1
    return f"{size:,.2f} {units[unit_index]}"


@dataclass(frozen=True)
class AudioMetadata:
    """Normalized metadata for one audio file.

    Numeric fields are zero when unknown, string fields None.
    """

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    duration: float = 0.0  # in seconds
    bitrate: int = 0  # bits per second
    sample_rate: int = 0
    channels: int = 0
    file_size: int = 0
    format: Optional[str] = None  # container format, e.g. "mp3", "flac"
    extension: Optional[str] = None  # lowercase, without the dot

    def has_basic_info(self) -> bool:
        """True when both title and artist are non-empty."""
        return bool(self.title) and bool(self.artist)

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration)

    @property
    def formatted_size(self) -> str:
        return format_size(self.file_size)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AudioMetadata":
        return cls(
            title=data.get("title"),
            artist=data.get("artist"),
            album=data.get("album"),
            duration=float(data.get("duration") or 0.0),
            bitrate=int(data.get("bitrate") or 0),
            sample_rate=int(data.get("sample_rate") or 0),
            channels=int(data.get("channels") or 0),
            file_size=int(data.get("file_size") or 0),
            format=data.get("format"),
            extension=data.get("extension"),
        )


@dataclass(frozen=True)
class Track:
    """One audio file plus its resolved metadata.

    Tracks are shared by any number of playlists and never owned by one.
    The id is assigned by the catalog when the track is persisted.
    Re-reading metadata means building a new Track.
    """

    file_path: str
    metadata: AudioMetadata = field(default_factory=AudioMetadata)
    filename: str = ""
    added_at: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.filename:
            object.__setattr__(self, "filename", Path(self.file_path).name)

    @classmethod
    def from_file(
        cls, file_path: str, metadata: AudioMetadata, added_at: Optional[datetime] = None
    ) -> "Track":
        """Create a Track for a file that must exist right now.

        Raises:
            NotReadable: If the file does not exist
        """
        if not os.path.isfile(file_path):
            raise NotReadable(file_path)
        return cls(
            file_path=str(file_path),
            metadata=metadata,
            added_at=added_at or datetime.now(),
        )

    def with_id(self, track_id: int) -> "Track":
        """Return a copy of this track carrying its catalog id."""
        return dataclasses.replace(self, id=track_id)

    @property
    def title(self) -> Optional[str]:
        return self.metadata.title

    @property
    def artist(self) -> Optional[str]:
        return self.metadata.artist

    @property
    def duration(self) -> float:
        return self.metadata.duration

    @property
    def display_name(self) -> str:
        """Display-friendly name for the track."""
        if self.artist and self.title:
            return f"{self.artist} - {self.title}"
        if self.title:
            return self.title
        return Path(self.file_path).stem

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "file_path": self.file_path,
            "filename": self.filename,
            "added_at": self.added_at.isoformat(),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Track":
        added_at = data.get("added_at")
        return cls(
            file_path=data["file_path"],
            metadata=AudioMetadata.from_dict(data.get("metadata") or {}),
            filename=data.get("filename") or "",
            added_at=datetime.fromisoformat(added_at) if added_at else datetime.now(),
            id=data.get("id"),
        )


class FileEntry(NamedTuple):
    """One directory child reported by the scanner."""

    filename: str
    path: str  # absolute path
    size: int  # bytes
    extension: str  # as written on disk, without the dot
    is_audio: bool
    modified: float  # mtime, seconds since the epoch
