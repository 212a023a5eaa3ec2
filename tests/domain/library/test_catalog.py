"""
Tests for the SQLite track catalog.
"""

import os

import pytest

from audio_tagger.domain.library.models import AudioMetadata, Track
from audio_tagger.domain.playlists.models import Playlist
from audio_tagger.exceptions import PersistenceError


class TestUpsert:
    def test_assigns_id(self, make_track):
        track = make_track("Artist - Song.mp3", duration=123.0)

        assert track.id is not None
        assert track.filename == "Artist - Song.mp3"

    def test_round_trips_metadata(self, catalog, make_track):
        track = make_track("x.flac", duration=42.5, title="T", artist="A", album="Al")

        loaded = catalog.get_by_id(track.id)

        assert loaded.title == "T"
        assert loaded.artist == "A"
        assert loaded.metadata.album == "Al"
        assert loaded.duration == 42.5
        assert loaded.metadata.extension == "flac"
        assert loaded.file_path == track.file_path

    def test_same_path_updates_in_place(self, catalog, make_track):
        first = make_track("song.mp3", title="Old")
        refreshed = Track(
            file_path=first.file_path,
            metadata=AudioMetadata(title="New", artist="Someone"),
        )

        second = catalog.upsert(refreshed)

        assert second.id == first.id
        assert catalog.get_by_id(first.id).title == "New"
        assert len(catalog.all_tracks()) == 1

    def test_upsert_many_preserves_order(self, catalog, tmp_path):
        tracks = [
            Track(file_path=str(tmp_path / name), metadata=AudioMetadata(title=name))
            for name in ["z.mp3", "a.mp3", "m.mp3"]
        ]

        saved = catalog.upsert_many(tracks)

        assert [t.filename for t in saved] == ["z.mp3", "a.mp3", "m.mp3"]
        assert len({t.id for t in saved}) == 3

    def test_all_tracks_sorted_by_filename(self, catalog, make_track):
        make_track("b.mp3")
        make_track("a.mp3")

        assert [t.filename for t in catalog.all_tracks()] == ["a.mp3", "b.mp3"]


class TestLookup:
    def test_get_by_path(self, catalog, make_track):
        track = make_track("song.mp3")
        assert catalog.get_by_path(track.file_path).id == track.id

    def test_missing_returns_none(self, catalog):
        assert catalog.get_by_id(999) is None
        assert catalog.get_by_path("/nowhere.mp3") is None


class TestRemove:
    def test_remove_keeps_file(self, catalog, make_track):
        track = make_track("keep.mp3")

        assert catalog.remove(track.id) is True

        assert catalog.get_by_id(track.id) is None
        assert catalog.get_by_path(track.file_path) is None
        assert os.path.exists(track.file_path)

    def test_remove_unknown(self, catalog):
        assert catalog.remove(12345) is False

    def test_remove_repacks_playlists(self, catalog, store, three_tracks):
        playlist = Playlist.create("Mix", store=store)
        playlist.save()
        for track in three_tracks:
            playlist.add_track(track)

        catalog.remove(three_tracks[0].id)

        memberships = store.load_memberships(playlist.id)
        assert [m.position for m in memberships] == [1, 2]
        assert [m.track_id for m in memberships] == [t.id for t in three_tracks[1:]]
        assert store.next_position(playlist.id) == 3


class TestErrors:
    def test_storage_failure_becomes_persistence_error(self, db, catalog, tmp_path):
        with db.connection() as conn:
            conn.execute("DROP TABLE playlist_tracks")
            conn.execute("DROP TABLE tracks")

        with pytest.raises(PersistenceError):
            catalog.upsert(Track(file_path=str(tmp_path / "x.mp3")))
