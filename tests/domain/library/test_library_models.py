"""
Tests for AudioMetadata, Track and the formatting helpers.
"""

from datetime import datetime

import pytest

from audio_tagger.domain.library.models import (
    AudioMetadata,
    Track,
    format_duration,
    format_size,
)
from audio_tagger.exceptions import NotReadable


@pytest.mark.parametrize(
    "seconds,expected",
    [(0, "00:00"), (59.9, "00:59"), (60, "01:00"), (215.5, "03:35"), (3725, "62:05")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.parametrize(
    "size,expected",
    [
        (0, "0.00 B"),
        (512, "512.00 B"),
        (1024, "1.00 KB"),
        (1536, "1.50 KB"),
        (5 * 1024 * 1024, "5.00 MB"),
        (3 * 1024**3, "3.00 GB"),
        (2048 * 1024**3, "2,048.00 GB"),
    ],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


class TestAudioMetadata:
    def test_defaults(self):
        meta = AudioMetadata()
        assert meta.title is None
        assert meta.duration == 0.0
        assert meta.bitrate == 0
        assert not meta.has_basic_info()

    def test_has_basic_info_needs_both(self):
        assert AudioMetadata(title="T", artist="A").has_basic_info()
        assert not AudioMetadata(title="T").has_basic_info()
        assert not AudioMetadata(title="", artist="A").has_basic_info()

    def test_formatted_fields(self):
        meta = AudioMetadata(duration=90.0, file_size=2048)
        assert meta.formatted_duration == "01:30"
        assert meta.formatted_size == "2.00 KB"

    def test_is_immutable(self):
        meta = AudioMetadata(title="T")
        with pytest.raises(AttributeError):
            meta.title = "Other"

    def test_dict_round_trip(self):
        meta = AudioMetadata(
            title="T", artist="A", album="Al", duration=1.5, bitrate=128000,
            sample_rate=44100, channels=2, file_size=99, format="mp3", extension="mp3",
        )
        assert AudioMetadata.from_dict(meta.to_dict()) == meta


class TestTrack:
    def test_from_file(self, tmp_path):
        path = tmp_path / "Artist - Song.mp3"
        path.write_bytes(b"\x00")
        meta = AudioMetadata(title="Song", artist="Artist", duration=10.0)

        track = Track.from_file(str(path), meta)

        assert track.filename == "Artist - Song.mp3"
        assert track.file_path == str(path)
        assert track.id is None
        assert track.title == "Song"
        assert track.artist == "Artist"
        assert track.duration == 10.0
        assert isinstance(track.added_at, datetime)

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(NotReadable):
            Track.from_file(str(tmp_path / "gone.mp3"), AudioMetadata())

    def test_with_id_returns_copy(self):
        track = Track(file_path="/music/a.mp3")
        saved = track.with_id(7)

        assert saved.id == 7
        assert track.id is None
        assert saved.file_path == track.file_path

    @pytest.mark.parametrize(
        "meta,expected",
        [
            (AudioMetadata(title="Song", artist="Band"), "Band - Song"),
            (AudioMetadata(title="Song"), "Song"),
            (AudioMetadata(), "untitled"),
        ],
    )
    def test_display_name(self, meta, expected):
        assert Track(file_path="/music/untitled.mp3", metadata=meta).display_name == expected

    def test_dict_round_trip(self):
        track = Track(
            file_path="/music/a.mp3",
            metadata=AudioMetadata(title="A", duration=3.0),
            added_at=datetime(2024, 5, 1, 12, 0, 0),
            id=3,
        )
        assert Track.from_dict(track.to_dict()) == track
