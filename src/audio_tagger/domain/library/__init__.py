"""Library domain - audio file listing, tag extraction and the track catalog.

This domain handles:
- Track, AudioMetadata and FileEntry models
- Metadata extraction from audio files (Mutagen)
- Single-folder directory scanning
- Parallel scan-and-tag batches
- The tracks catalog
"""

# Models
from .models import AudioMetadata, FileEntry, Track, format_duration, format_size

# Metadata extraction
from .metadata import (
    MetadataReader,
    TagExtractor,
    extract_metadata,
    get_tag_value,
    parse_filename,
)

# Directory scanning
from .scanner import (
    SUPPORTED_EXTENSIONS,
    is_supported_format,
    list_audio_files,
    scan_directory,
)

# Batch tagging
from .import_tracks import load_from_directory, tag_files

# Catalog
from .catalog import TrackCatalog

__all__ = [
    # Models
    "AudioMetadata",
    "FileEntry",
    "Track",
    "format_duration",
    "format_size",
    # Metadata
    "MetadataReader",
    "TagExtractor",
    "extract_metadata",
    "get_tag_value",
    "parse_filename",
    # Scanner
    "SUPPORTED_EXTENSIONS",
    "is_supported_format",
    "list_audio_files",
    "scan_directory",
    # Batch
    "load_from_directory",
    "tag_files",
    # Catalog
    "TrackCatalog",
]
