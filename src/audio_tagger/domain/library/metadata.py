"""
Audio metadata extraction.

Reads embedded tags and stream info with Mutagen and normalizes them into an
AudioMetadata record. Tag extraction is best-effort: missing tags or stream
info never fail the extraction, only an unreadable file does.
"""

import os
from pathlib import Path
from typing import Any, Optional, Protocol

from loguru import logger
from mutagen import File as MutagenFile
from mutagen import MutagenError

from audio_tagger.exceptions import NotReadable

from .models import AudioMetadata

FILENAME_SEPARATOR = " - "

# Tag schemes in priority order. Each field is resolved independently, so a
# file missing an ID3 title still gets its Vorbis title.
TAG_SCHEMES: dict[str, dict[str, list[str]]] = {
    "id3": {
        "title": ["TIT2"],
        "artist": ["TPE1"],
        "album": ["TALB"],
    },
    "vorbis": {
        "title": ["title", "TITLE"],
        "artist": ["artist", "ARTIST"],
        "album": ["album", "ALBUM"],
    },
    "mp4": {
        "title": ["\xa9nam"],
        "artist": ["\xa9ART"],
        "album": ["\xa9alb"],
    },
}


class MetadataReader(Protocol):
    """Anything that can turn a file path into AudioMetadata."""

    def extract(self, path: str) -> AudioMetadata: ...


def get_tag_value(tags: Any, tag_names: list[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    if tags is None:
        return None

    for tag_name in tag_names:
        try:
            value = tags.get(tag_name)
        except (KeyError, ValueError):
            # Vorbis comments raise ValueError for keys they cannot hold
            continue
        if not value:
            continue

        # ID3 frames keep their values in .text
        if hasattr(value, "text"):
            value = value.text
        if isinstance(value, list):
            value = value[0] if value else None
        if value is None:
            continue

        text = str(value).strip()
        if text:
            return text
    return None


def resolve_tag_field(tags: Any, field_name: str) -> Optional[str]:
    """Resolve one field by walking the tag schemes in priority order."""
    for scheme in TAG_SCHEMES.values():
        value = get_tag_value(tags, scheme[field_name])
        if value:
            return value
    return None


def parse_filename(path: str) -> dict[str, Optional[str]]:
    """Split "<artist> - <title>.<ext>" into its parts.

    Without the separator the whole name is the title and artist is None.
    """
    name = Path(path).name
    stem = Path(name).stem

    if FILENAME_SEPARATOR in stem:
        artist, title = stem.split(FILENAME_SEPARATOR, 1)
        return {"artist": artist.strip(), "title": title.strip()}

    return {"artist": None, "title": stem.strip()}


def get_extension(path: str) -> Optional[str]:
    suffix = Path(path).suffix
    return suffix[1:].lower() if suffix else None


def _stream_info(audio_file: Any) -> dict[str, Any]:
    info = getattr(audio_file, "info", None)
    if info is None:
        return {}
    return {
        "duration": float(getattr(info, "length", 0.0) or 0.0),
        "bitrate": int(getattr(info, "bitrate", 0) or 0),
        "sample_rate": int(getattr(info, "sample_rate", 0) or 0),
        "channels": int(getattr(info, "channels", 0) or 0),
    }


def _container_format(audio_file: Any, extension: Optional[str]) -> Optional[str]:
    mime = getattr(audio_file, "mime", None) or []
    if mime:
        return mime[0].split("/")[-1]
    return extension


def ensure_readable(path: str) -> None:
    """Raise NotReadable unless path is a file that can be opened."""
    if not os.path.isfile(path):
        raise NotReadable(path)
    try:
        with open(path, "rb"):
            pass
    except OSError as e:
        raise NotReadable(path, f"Cannot open {path}: {e}") from e


class TagExtractor:
    """Mutagen-backed metadata reader."""

    def extract(self, path: str) -> AudioMetadata:
        """Extract metadata from an audio file.

        Raises:
            NotReadable: If the file does not exist or cannot be opened
        """
        path = str(path)
        ensure_readable(path)

        extension = get_extension(path)
        file_size = os.path.getsize(path)

        try:
            audio_file = MutagenFile(path)
        except (MutagenError, OSError) as e:
            logger.warning(f"Could not read tags from {path}: {e}")
            audio_file = None

        tags = getattr(audio_file, "tags", None) if audio_file is not None else None

        title = resolve_tag_field(tags, "title")
        artist = resolve_tag_field(tags, "artist")
        album = resolve_tag_field(tags, "album")

        if not title or not artist:
            parsed = parse_filename(path)
            artist = artist or parsed["artist"]
            title = title or parsed["title"]

        info = _stream_info(audio_file) if audio_file is not None else {}

        return AudioMetadata(
            title=title or None,
            artist=artist or None,
            album=album,
            duration=info.get("duration", 0.0),
            bitrate=info.get("bitrate", 0),
            sample_rate=info.get("sample_rate", 0),
            channels=info.get("channels", 0),
            file_size=file_size,
            format=_container_format(audio_file, extension),
            extension=extension,
        )


def extract_metadata(path: str) -> AudioMetadata:
    """Extract metadata with the default Mutagen reader."""
    return TagExtractor().extract(path)
