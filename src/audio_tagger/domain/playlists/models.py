"""
Playlist domain model.

A Playlist is an ordered list of Track references with a navigation cursor.
It knows nothing about SQL: membership changes go through the PlaylistStore
it was saved with, and the cached member list is reloaded from that store
after every change.

Persistence is one-way: a playlist starts unsaved (id is None) and becomes
saved once a store assigns it an id. Tracks it was seeded with are stored
as its first memberships on that save; after that, membership only changes
through the store.
"""

import copy
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol

from audio_tagger.domain.library.models import Track
from audio_tagger.exceptions import InvalidIndex, NotPersisted


class PlaylistStore(Protocol):
    """Persistence operations a Playlist depends on."""

    def save(self, playlist: "Playlist") -> int: ...
    def add_membership(
        self, playlist_id: int, track_id: int, position: Optional[int] = None
    ) -> int: ...
    def remove_membership(self, playlist_id: int, track_id: int) -> bool: ...
    def load_members(self, playlist_id: int) -> list[Track]: ...
    def next_position(self, playlist_id: int) -> int: ...


@dataclass(eq=False)
class Playlist:
    """Ordered, named collection of tracks."""

    title: str
    description: Optional[str] = None
    tracks: list[Track] = field(default_factory=list, repr=False)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None
    store: Optional[PlaylistStore] = field(default=None, repr=False)
    _current_position: int = field(default=0, init=False, repr=False)
    _tracks_loaded: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("Playlist title must not be empty")
        self.tracks = list(self.tracks)

    @classmethod
    def create(
        cls,
        title: str,
        description: Optional[str] = None,
        store: Optional[PlaylistStore] = None,
    ) -> "Playlist":
        """Create an unsaved playlist; call save() to persist it."""
        now = datetime.now()
        return cls(
            title=title,
            description=description,
            created_at=now,
            updated_at=now,
            store=store,
        )

    # Persistence

    @property
    def is_saved(self) -> bool:
        return self.id is not None

    def bind(self, playlist_id: int, store: PlaylistStore) -> None:
        """Record the id assigned by a store (unsaved -> saved)."""
        if self.id is not None and self.id != playlist_id:
            raise ValueError(
                f"Playlist already saved as #{self.id}, cannot rebind to #{playlist_id}"
            )
        self.id = playlist_id
        self.store = store
        self._tracks_loaded = False

    def save(self) -> int:
        """Insert or update this playlist through its store."""
        if self.store is None:
            raise NotPersisted("Playlist has no store to save into")
        return self.store.save(self)

    def _require_saved(self) -> PlaylistStore:
        if self.id is None or self.store is None:
            raise NotPersisted("Playlist must be saved before changing its tracks")
        return self.store

    # Membership

    def add_track(self, track: Track, position: Optional[int] = None) -> int:
        """Add a catalogued track at a 1-based position (default: the end).

        Returns:
            The position the track was stored at

        Raises:
            NotPersisted: If the playlist or the track has no id yet
            InvalidIndex: If position is outside 1..len+1
            PersistenceError: If the store rejects the change
        """
        store = self._require_saved()
        if track.id is None:
            raise NotPersisted(f"Track {track.file_path} must be catalogued first")

        stored_at = store.add_membership(self.id, track.id, position)
        self._tracks_loaded = False
        return stored_at

    def remove_track(self, track: Track) -> bool:
        """Remove a track's membership; remaining positions are repacked.

        Returns:
            True if the track was a member
        """
        store = self._require_saved()
        if track.id is None:
            return False

        removed = store.remove_membership(self.id, track.id)
        self._tracks_loaded = False
        self._clamp_cursor()
        return removed

    def remove_track_at(self, index: int) -> bool:
        """Remove the track at a 0-based index.

        Raises:
            InvalidIndex: If index is out of range
        """
        tracks = self.get_tracks()
        if not 0 <= index < len(tracks):
            raise InvalidIndex(index, len(tracks))
        return self.remove_track(tracks[index])

    def get_tracks(self) -> list[Track]:
        """Ordered member tracks, reloaded from the store when stale."""
        if not self._tracks_loaded and self.id is not None and self.store is not None:
            self.tracks = self.store.load_members(self.id)
            self._tracks_loaded = True
            self._clamp_cursor()
        return list(self.tracks)

    def next_position(self) -> int:
        store = self._require_saved()
        return store.next_position(self.id)

    # Navigation

    def __len__(self) -> int:
        return len(self.get_tracks())

    @property
    def track_count(self) -> int:
        return len(self)

    def is_empty(self) -> bool:
        return len(self) == 0

    @property
    def current_position(self) -> int:
        return self._current_position

    def _clamp_cursor(self) -> None:
        count = len(self.get_tracks())
        if count == 0:
            self._current_position = 0
        else:
            self._current_position = max(0, min(self._current_position, count - 1))

    def get_track_at(self, index: int) -> Optional[Track]:
        """Track at a 0-based index, or None when out of range."""
        tracks = self.get_tracks()
        if 0 <= index < len(tracks):
            return tracks[index]
        return None

    def current_track(self) -> Optional[Track]:
        return self.get_track_at(self._current_position)

    def jump_to(self, index: int) -> Optional[Track]:
        """Move the cursor to index; out of range leaves it where it was."""
        if self.get_track_at(index) is None:
            return None
        self._current_position = index
        return self.current_track()

    def next(self) -> Optional[Track]:
        """Advance the cursor, wrapping to the first track."""
        count = len(self)
        if count == 0:
            return None
        self._current_position = (self._current_position + 1) % count
        return self.current_track()

    def prev(self) -> Optional[Track]:
        """Step the cursor back, wrapping to the last track."""
        count = len(self)
        if count == 0:
            return None
        self._current_position = (self._current_position - 1) % count
        return self.current_track()

    @property
    def total_duration(self) -> float:
        return sum(track.duration for track in self.get_tracks())

    # Copies and serialization

    def deep_clone(self) -> "Playlist":
        """Unsaved copy with its own copies of the member tracks."""
        return Playlist(
            title=self.title,
            description=self.description,
            tracks=copy.deepcopy(self.get_tracks()),
            created_at=self.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "tracks": [track.to_dict() for track in self.get_tracks()],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Playlist":
        """Build an unsaved playlist from to_dict() output (the id is dropped)."""
        created_at = data.get("created_at")
        updated_at = data.get("updated_at")
        return cls(
            title=data["title"],
            description=data.get("description"),
            tracks=[Track.from_dict(t) for t in data.get("tracks", [])],
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(),
            updated_at=datetime.fromisoformat(updated_at) if updated_at else datetime.now(),
        )

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
