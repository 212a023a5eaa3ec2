"""
Tests for the Playlist model: persistence rules, membership and navigation.
"""

import json

import pytest

from audio_tagger.domain.library.models import AudioMetadata, Track
from audio_tagger.domain.playlists.models import Playlist
from audio_tagger.exceptions import InvalidIndex, NotPersisted


@pytest.fixture
def saved_playlist(store):
    playlist = Playlist.create("Road Trip", "Songs for driving", store=store)
    playlist.save()
    return playlist


@pytest.fixture
def filled_playlist(saved_playlist, three_tracks):
    for track in three_tracks:
        saved_playlist.add_track(track)
    return saved_playlist


class TestCreate:
    def test_new_playlist_is_unsaved(self):
        playlist = Playlist.create("Chill")

        assert playlist.id is None
        assert not playlist.is_saved
        assert playlist.get_tracks() == []
        assert playlist.is_empty()
        assert playlist.created_at == playlist.updated_at

    @pytest.mark.parametrize("title", ["", "   "])
    def test_empty_title_rejected(self, title):
        with pytest.raises(ValueError):
            Playlist.create(title)

    def test_save_assigns_id(self, saved_playlist):
        assert saved_playlist.is_saved
        assert saved_playlist.id is not None

    def test_save_without_store(self):
        with pytest.raises(NotPersisted):
            Playlist.create("Loose").save()

    def test_bind_refuses_a_different_id(self, saved_playlist, store):
        with pytest.raises(ValueError):
            saved_playlist.bind(saved_playlist.id + 1, store)


class TestUnsavedMembership:
    def test_add_track_requires_saved_playlist(self, three_tracks):
        playlist = Playlist.create("Draft")

        with pytest.raises(NotPersisted):
            playlist.add_track(three_tracks[0])

        assert playlist.get_tracks() == []
        assert playlist.id is None

    def test_remove_track_requires_saved_playlist(self, three_tracks):
        with pytest.raises(NotPersisted):
            Playlist.create("Draft").remove_track(three_tracks[0])

    def test_next_position_requires_saved_playlist(self):
        with pytest.raises(NotPersisted):
            Playlist.create("Draft").next_position()

    def test_uncatalogued_track_is_rejected(self, saved_playlist, tmp_path):
        track = Track(file_path=str(tmp_path / "loose.mp3"))

        with pytest.raises(NotPersisted):
            saved_playlist.add_track(track)

        assert saved_playlist.get_tracks() == []


class TestMembership:
    def test_next_position_starts_at_one(self, saved_playlist):
        assert saved_playlist.next_position() == 1

    def test_add_appends_in_order(self, filled_playlist, three_tracks):
        assert [t.id for t in filled_playlist.get_tracks()] == [t.id for t in three_tracks]
        assert filled_playlist.next_position() == 4
        assert len(filled_playlist) == 3
        assert filled_playlist.track_count == 3

    def test_add_returns_position(self, saved_playlist, three_tracks):
        assert saved_playlist.add_track(three_tracks[0]) == 1
        assert saved_playlist.add_track(three_tracks[1]) == 2
        assert saved_playlist.add_track(three_tracks[2], position=1) == 1
        assert [t.id for t in saved_playlist.get_tracks()] == [
            three_tracks[2].id,
            three_tracks[0].id,
            three_tracks[1].id,
        ]

    def test_remove_track(self, filled_playlist, three_tracks):
        assert filled_playlist.remove_track(three_tracks[1]) is True

        assert [t.id for t in filled_playlist.get_tracks()] == [
            three_tracks[0].id,
            three_tracks[2].id,
        ]
        assert filled_playlist.next_position() == 3

    def test_remove_non_member(self, saved_playlist, three_tracks):
        assert saved_playlist.remove_track(three_tracks[0]) is False

    def test_remove_track_at(self, filled_playlist, three_tracks):
        filled_playlist.remove_track_at(0)
        assert filled_playlist.get_track_at(0).id == three_tracks[1].id

    def test_remove_track_at_out_of_range(self, filled_playlist):
        with pytest.raises(InvalidIndex):
            filled_playlist.remove_track_at(3)
        assert len(filled_playlist) == 3

    def test_get_tracks_returns_a_copy(self, filled_playlist):
        filled_playlist.get_tracks().clear()
        assert len(filled_playlist) == 3

    def test_total_duration(self, filled_playlist):
        assert filled_playlist.total_duration == 600.0

    def test_track_shared_between_playlists(self, store, three_tracks):
        first = Playlist.create("One", store=store)
        second = Playlist.create("Two", store=store)
        first.save()
        second.save()

        first.add_track(three_tracks[0])
        second.add_track(three_tracks[0])

        assert first.get_track_at(0).id == second.get_track_at(0).id


class TestNavigation:
    def test_empty_playlist(self, saved_playlist):
        assert saved_playlist.current_track() is None
        assert saved_playlist.next() is None
        assert saved_playlist.prev() is None
        assert saved_playlist.current_position == 0

    def test_next_wraps_around(self, filled_playlist, three_tracks):
        ids = [filled_playlist.next().id for _ in range(3)]
        assert ids == [three_tracks[1].id, three_tracks[2].id, three_tracks[0].id]

    def test_prev_wraps_around(self, filled_playlist, three_tracks):
        assert filled_playlist.prev().id == three_tracks[2].id
        assert filled_playlist.current_position == 2

    def test_jump_to(self, filled_playlist, three_tracks):
        assert filled_playlist.jump_to(2).id == three_tracks[2].id
        assert filled_playlist.current_position == 2

    def test_jump_out_of_range_keeps_cursor(self, filled_playlist):
        filled_playlist.jump_to(1)

        assert filled_playlist.jump_to(5) is None
        assert filled_playlist.jump_to(-1) is None
        assert filled_playlist.current_position == 1

    def test_get_track_at_out_of_range(self, filled_playlist):
        assert filled_playlist.get_track_at(3) is None
        assert filled_playlist.get_track_at(-1) is None

    def test_cursor_clamped_after_removing_last(self, filled_playlist, three_tracks):
        filled_playlist.jump_to(2)

        filled_playlist.remove_track(three_tracks[2])

        assert filled_playlist.current_position == 1
        assert filled_playlist.current_track().id == three_tracks[1].id

    def test_cursor_reset_when_emptied(self, filled_playlist, three_tracks):
        filled_playlist.jump_to(1)
        for track in three_tracks:
            filled_playlist.remove_track(track)

        assert filled_playlist.current_position == 0
        assert filled_playlist.current_track() is None


class TestCopies:
    def test_deep_clone_is_unsaved_and_independent(self, filled_playlist):
        clone = filled_playlist.deep_clone()

        assert clone.id is None
        assert clone.store is None
        assert clone.title == filled_playlist.title
        assert clone.description == filled_playlist.description
        assert clone.created_at == filled_playlist.created_at
        assert [t.file_path for t in clone.get_tracks()] == [
            t.file_path for t in filled_playlist.get_tracks()
        ]
        assert clone.get_tracks()[0] is not filled_playlist.get_tracks()[0]

    def test_clone_survives_source_changes(self, filled_playlist, three_tracks):
        clone = filled_playlist.deep_clone()

        filled_playlist.remove_track(three_tracks[0])

        assert len(clone) == 3
        assert len(filled_playlist) == 2

    def test_to_dict_and_str(self, filled_playlist):
        data = filled_playlist.to_dict()

        assert data["id"] == filled_playlist.id
        assert data["title"] == "Road Trip"
        assert len(data["tracks"]) == 3
        assert json.loads(str(filled_playlist)) == data

    def test_from_dict_is_unsaved(self, filled_playlist):
        restored = Playlist.from_dict(filled_playlist.to_dict())

        assert restored.id is None
        assert restored.title == filled_playlist.title
        assert [t.id for t in restored.get_tracks()] == [
            t.id for t in filled_playlist.get_tracks()
        ]

    def test_unsaved_playlist_seeded_with_tracks(self):
        tracks = [Track(file_path="/m/a.mp3", metadata=AudioMetadata(duration=5.0))]
        playlist = Playlist(title="Seeded", tracks=tracks)

        assert len(playlist) == 1
        assert playlist.total_duration == 5.0
        assert playlist.next().file_path == "/m/a.mp3"

    def test_saved_clone_keeps_its_tracks(self, filled_playlist, store):
        clone = filled_playlist.deep_clone()

        clone_id = store.save(clone)

        assert clone_id != filled_playlist.id
        assert [t.id for t in clone.get_tracks()] == [
            t.id for t in filled_playlist.get_tracks()
        ]
        assert clone.next_position() == 4
        assert [t.id for t in store.get(clone_id).get_tracks()] == [
            t.id for t in filled_playlist.get_tracks()
        ]

    def test_saved_from_dict_keeps_its_tracks(self, filled_playlist, store):
        restored = Playlist.from_dict(filled_playlist.to_dict())

        store.save(restored)

        assert len(restored) == 3
        restored.remove_track(restored.get_track_at(0))
        assert len(restored) == 2
        assert len(filled_playlist) == 3

    def test_saving_uncatalogued_seed_fails(self, store):
        playlist = Playlist(title="Loose", tracks=[Track(file_path="/m/a.mp3")])

        with pytest.raises(NotPersisted):
            store.save(playlist)

        assert playlist.id is None
        assert len(playlist) == 1
        assert store.list_playlists() == []
