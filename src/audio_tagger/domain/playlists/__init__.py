"""Playlists domain - ordered playlists and their persistence.

This domain handles:
- The Playlist entity (membership, cursor navigation, cloning)
- SQLite storage of playlists and dense 1-based track positions
"""

from .models import Playlist, PlaylistStore
from .store import Membership, SqlitePlaylistStore, repack_positions

__all__ = [
    "Playlist",
    "PlaylistStore",
    "Membership",
    "SqlitePlaylistStore",
    "repack_positions",
]
