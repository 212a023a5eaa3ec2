"""Exceptions raised by the library, playlist, and storage layers."""

from typing import Optional


class AudioTaggerError(Exception):
    """Base exception for audio-tagger operations."""

    pass


class NotReadable(AudioTaggerError):
    """Raised when an audio file is missing or cannot be opened."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Audio file not found or not readable: {path}")


class DirectoryNotFound(AudioTaggerError):
    """Raised when a directory to scan does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Directory does not exist: {path}")


class NotPersisted(AudioTaggerError):
    """Raised when a membership operation needs a saved playlist or track."""

    pass


class PersistenceError(AudioTaggerError):
    """Raised when the storage layer fails during a save or membership change."""

    pass


class InvalidIndex(AudioTaggerError):
    """Raised when a track index or position is out of range."""

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(f"Track index {index} does not exist (length {length})")


class ScanCancelled(AudioTaggerError):
    """Raised when a batch scan is aborted before completion."""

    pass
