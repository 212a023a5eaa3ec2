"""
SQLite persistence for playlists and their track memberships.

Positions are dense and 1-based within a playlist. Every multi-row change
(insert with shift, remove with repack, move) runs in one transaction, so a
failure leaves the previous ordering intact. Rewrites first park affected
rows at negative positions, which keeps UNIQUE (playlist_id, position)
satisfied after every single-row update.
"""

import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional

from loguru import logger

from audio_tagger.core.database import now_timestamp, parse_timestamp, transaction
from audio_tagger.core.db_adapter import ConnectionProtocol, StorageHandle
from audio_tagger.domain.library.catalog import row_to_track
from audio_tagger.domain.library.models import Track
from audio_tagger.exceptions import InvalidIndex, NotPersisted, PersistenceError

from .models import Playlist


@dataclass(frozen=True)
class Membership:
    """One (playlist, track, position) row."""

    playlist_id: int
    track_id: int
    position: int
    added_at: datetime


def _max_position(conn: ConnectionProtocol, playlist_id: int) -> int:
    row = conn.execute(
        "SELECT COALESCE(MAX(position), 0) AS max_position FROM playlist_tracks WHERE playlist_id = ?",
        (playlist_id,),
    ).fetchone()
    return row["max_position"]


def _write_positions(
    conn: ConnectionProtocol, playlist_id: int, ordered_ids: list[int]
) -> None:
    """Assign positions 1..N to membership rows in the given order."""
    conn.execute(
        "UPDATE playlist_tracks SET position = -position WHERE playlist_id = ? AND position > 0",
        (playlist_id,),
    )
    conn.executemany(
        "UPDATE playlist_tracks SET position = ? WHERE id = ?",
        [(position, row_id) for position, row_id in enumerate(ordered_ids, 1)],
    )


def repack_positions(conn: ConnectionProtocol, playlist_id: int) -> None:
    """Renumber a playlist's memberships to 1..N, keeping their relative order.

    Must run inside the caller's transaction.
    """
    rows = conn.execute(
        """
        SELECT id FROM playlist_tracks
        WHERE playlist_id = ?
        ORDER BY position, id
    """,
        (playlist_id,),
    ).fetchall()
    _write_positions(conn, playlist_id, [row["id"] for row in rows])


def _touch(conn: ConnectionProtocol, playlist_id: int) -> None:
    conn.execute(
        "UPDATE playlists SET updated_at = ? WHERE id = ?",
        (now_timestamp(), playlist_id),
    )


class SqlitePlaylistStore:
    """Playlist repository over an injected storage handle.

    Mutations of one playlist are serialized with a per-playlist lock because
    repacking reads and rewrites the whole membership set.
    """

    def __init__(self, handle: StorageHandle) -> None:
        self.handle = handle
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _playlist_lock(self, playlist_id: int) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(playlist_id, threading.Lock())
        with lock:
            yield

    @contextmanager
    def _mutation(self, playlist_id: int, action: str) -> Iterator[ConnectionProtocol]:
        """Locked, transactional connection; storage errors become PersistenceError."""
        with self._playlist_lock(playlist_id):
            try:
                with self.handle.connection() as conn:
                    with transaction(conn):
                        yield conn
            except sqlite3.Error as e:
                logger.error(f"Failed to {action} (playlist {playlist_id}): {e}")
                raise PersistenceError(f"Failed to {action}: {e}") from e

    # Playlists

    def save(self, playlist: Playlist) -> int:
        """Insert an unsaved playlist or update a saved one.

        Inserting also writes the tracks the playlist was seeded with as its
        memberships, at positions 1..N in list order.

        Returns:
            The playlist id

        Raises:
            NotPersisted: If a seeded track has not been catalogued
            PersistenceError: If the row could not be written
        """
        if not playlist.title or not playlist.title.strip():
            raise ValueError("Playlist title must not be empty")

        if playlist.id is None:
            # Tracks seeded by deep_clone() or from_dict() become memberships
            seeded = list(playlist.tracks)
            missing = [t.file_path for t in seeded if t.id is None]
            if missing:
                raise NotPersisted(
                    f"Tracks must be catalogued before saving the playlist: {missing}"
                )
            try:
                with self.handle.connection() as conn:
                    with transaction(conn):
                        cursor = conn.execute(
                            """
                            INSERT INTO playlists (title, description, created_at, updated_at)
                            VALUES (?, ?, ?, ?)
                        """,
                            (
                                playlist.title,
                                playlist.description,
                                playlist.created_at.isoformat(timespec="seconds"),
                                playlist.updated_at.isoformat(timespec="seconds"),
                            ),
                        )
                        playlist_id = cursor.lastrowid
                        added_at = now_timestamp()
                        conn.executemany(
                            """
                            INSERT INTO playlist_tracks
                                (playlist_id, track_id, position, added_at)
                            VALUES (?, ?, ?, ?)
                        """,
                            [
                                (playlist_id, track.id, position, added_at)
                                for position, track in enumerate(seeded, 1)
                            ],
                        )
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to create playlist: {e}") from e

            playlist.bind(playlist_id, self)
            logger.info(f"Created playlist #{playlist_id} '{playlist.title}'")
            return playlist_id

        updated_at = datetime.now()
        with self._mutation(playlist.id, "update playlist") as conn:
            cursor = conn.execute(
                """
                UPDATE playlists
                SET title = ?, description = ?, updated_at = ?
                WHERE id = ?
            """,
                (
                    playlist.title,
                    playlist.description,
                    updated_at.isoformat(timespec="seconds"),
                    playlist.id,
                ),
            )
            if cursor.rowcount == 0:
                raise NotPersisted(f"Playlist #{playlist.id} no longer exists")

        playlist.updated_at = updated_at
        playlist.bind(playlist.id, self)
        return playlist.id

    def get(self, playlist_id: int) -> Optional[Playlist]:
        """Load a saved playlist (members load lazily on first access)."""
        with self.handle.connection() as conn:
            row = conn.execute(
                "SELECT * FROM playlists WHERE id = ?", (playlist_id,)
            ).fetchone()
        if not row:
            return None
        return self._row_to_playlist(row)

    def list_playlists(self) -> list[Playlist]:
        with self.handle.connection() as conn:
            rows = conn.execute("SELECT * FROM playlists ORDER BY id").fetchall()
        return [self._row_to_playlist(row) for row in rows]

    def delete(self, playlist_id: int) -> bool:
        """Delete a playlist and its memberships (tracks stay catalogued)."""
        with self._mutation(playlist_id, "delete playlist") as conn:
            cursor = conn.execute("DELETE FROM playlists WHERE id = ?", (playlist_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted playlist #{playlist_id}")
        return deleted

    def _row_to_playlist(self, row) -> Playlist:
        playlist = Playlist(
            title=row["title"],
            description=row["description"],
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )
        playlist.bind(row["id"], self)
        return playlist

    # Memberships

    def next_position(self, playlist_id: int) -> int:
        """One more than the highest position, or 1 for an empty playlist."""
        with self.handle.connection() as conn:
            return _max_position(conn, playlist_id) + 1

    def add_membership(
        self, playlist_id: int, track_id: int, position: Optional[int] = None
    ) -> int:
        """Insert a track at a 1-based position, shifting later tracks down.

        Returns:
            The position the track was stored at

        Raises:
            InvalidIndex: If position is outside 1..next_position
            PersistenceError: If the track is already a member, or the
                playlist or track does not exist
        """
        with self._mutation(playlist_id, f"add track {track_id}") as conn:
            next_position = _max_position(conn, playlist_id) + 1
            if position is None:
                position = next_position
            elif not 1 <= position <= next_position:
                raise InvalidIndex(position, next_position - 1)

            if position < next_position:
                # Park rows at or after the slot, then bring them back one lower
                conn.execute(
                    """
                    UPDATE playlist_tracks SET position = -(position + 1)
                    WHERE playlist_id = ? AND position >= ?
                """,
                    (playlist_id, position),
                )
                conn.execute(
                    """
                    UPDATE playlist_tracks SET position = -position
                    WHERE playlist_id = ? AND position < 0
                """,
                    (playlist_id,),
                )

            conn.execute(
                """
                INSERT INTO playlist_tracks (playlist_id, track_id, position, added_at)
                VALUES (?, ?, ?, ?)
            """,
                (playlist_id, track_id, position, now_timestamp()),
            )
            _touch(conn, playlist_id)

        logger.info(f"Added track {track_id} to playlist {playlist_id} at {position}")
        return position

    def remove_membership(self, playlist_id: int, track_id: int) -> bool:
        """Remove a track from a playlist and repack positions to 1..N.

        Returns:
            True if the track was a member
        """
        with self._mutation(playlist_id, f"remove track {track_id}") as conn:
            cursor = conn.execute(
                "DELETE FROM playlist_tracks WHERE playlist_id = ? AND track_id = ?",
                (playlist_id, track_id),
            )
            removed = cursor.rowcount > 0
            if removed:
                repack_positions(conn, playlist_id)
                _touch(conn, playlist_id)

        if removed:
            logger.info(f"Removed track {track_id} from playlist {playlist_id}")
        return removed

    def move_membership(
        self, playlist_id: int, from_position: int, to_position: int
    ) -> None:
        """Move the track at from_position to to_position (both 1-based).

        Raises:
            InvalidIndex: If either position is out of range
        """
        with self._mutation(playlist_id, "reorder tracks") as conn:
            rows = conn.execute(
                "SELECT id FROM playlist_tracks WHERE playlist_id = ? ORDER BY position",
                (playlist_id,),
            ).fetchall()
            ordered_ids = [row["id"] for row in rows]
            for pos in (from_position, to_position):
                if not 1 <= pos <= len(ordered_ids):
                    raise InvalidIndex(pos, len(ordered_ids))

            ordered_ids.insert(to_position - 1, ordered_ids.pop(from_position - 1))
            _write_positions(conn, playlist_id, ordered_ids)
            _touch(conn, playlist_id)

    def load_members(self, playlist_id: int) -> list[Track]:
        """Member tracks ordered by position."""
        with self.handle.connection() as conn:
            rows = conn.execute(
                """
                SELECT t.*
                FROM tracks t
                JOIN playlist_tracks pt ON t.id = pt.track_id
                WHERE pt.playlist_id = ?
                ORDER BY pt.position
            """,
                (playlist_id,),
            ).fetchall()
        return [row_to_track(row) for row in rows]

    def load_memberships(self, playlist_id: int) -> list[Membership]:
        """Raw membership rows ordered by position."""
        with self.handle.connection() as conn:
            rows = conn.execute(
                """
                SELECT playlist_id, track_id, position, added_at
                FROM playlist_tracks
                WHERE playlist_id = ?
                ORDER BY position
            """,
                (playlist_id,),
            ).fetchall()
        return [
            Membership(
                playlist_id=row["playlist_id"],
                track_id=row["track_id"],
                position=row["position"],
                added_at=parse_timestamp(row["added_at"]),
            )
            for row in rows
        ]
