"""Shared fixtures: in-memory storage, catalogued tracks and tiny WAV files."""

import wave
from pathlib import Path

import pytest

from audio_tagger.core.database import SqliteDatabase, init_database
from audio_tagger.domain.library.catalog import TrackCatalog
from audio_tagger.domain.library.models import AudioMetadata, Track
from audio_tagger.domain.playlists.store import SqlitePlaylistStore


def write_wav(path: Path, seconds: float = 1.0, rate: int = 8000, channels: int = 1) -> Path:
    """Write a silent 16-bit PCM WAV file."""
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(b"\x00\x00" * int(rate * seconds) * channels)
    return path


@pytest.fixture
def make_wav():
    return write_wav


@pytest.fixture
def db():
    """Initialized in-memory database."""
    database = SqliteDatabase(":memory:")
    init_database(database)
    yield database
    database.close()


@pytest.fixture
def catalog(db) -> TrackCatalog:
    return TrackCatalog(db)


@pytest.fixture
def store(db) -> SqlitePlaylistStore:
    return SqlitePlaylistStore(db)


@pytest.fixture
def make_track(tmp_path, catalog):
    """Create a file on disk and catalogue a Track for it."""

    def _make(name: str, duration: float = 60.0, **meta) -> Track:
        path = tmp_path / name
        path.write_bytes(b"\x00" * 16)
        metadata = AudioMetadata(
            title=meta.get("title", Path(name).stem),
            artist=meta.get("artist", "Test Artist"),
            album=meta.get("album"),
            duration=duration,
            file_size=16,
            extension=Path(name).suffix.lstrip("."),
        )
        return catalog.upsert(Track.from_file(str(path), metadata))

    return _make


@pytest.fixture
def three_tracks(make_track) -> list[Track]:
    return [
        make_track("01 - One.mp3", duration=100.0),
        make_track("02 - Two.mp3", duration=200.0),
        make_track("03 - Three.mp3", duration=300.0),
    ]
