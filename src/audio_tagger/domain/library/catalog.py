"""
Track catalog backed by the tracks table.

Tracks are keyed by file path. Removing a track deletes its catalog row and
its playlist memberships, never the audio file itself.
"""

import sqlite3
from typing import Any, Iterable, Optional

from loguru import logger

from audio_tagger.core.database import now_timestamp, parse_timestamp, transaction
from audio_tagger.core.db_adapter import ConnectionProtocol, StorageHandle
from audio_tagger.exceptions import PersistenceError

from .models import AudioMetadata, Track


def row_to_track(row: Any) -> Track:
    """Convert a tracks row (or a joined row with track columns) to a Track."""
    return Track(
        id=row["id"],
        file_path=row["file_path"],
        filename=row["filename"],
        added_at=parse_timestamp(row["added_at"]),
        metadata=AudioMetadata(
            title=row["title"],
            artist=row["artist"],
            album=row["album"],
            duration=row["duration"] or 0.0,
            bitrate=row["bitrate"] or 0,
            sample_rate=row["sample_rate"] or 0,
            channels=row["channels"] or 0,
            file_size=row["file_size"] or 0,
            format=row["format"],
            extension=_extension_of(row["filename"]),
        ),
    )


def _extension_of(filename: str) -> Optional[str]:
    if "." not in filename:
        return None
    return filename.rsplit(".", 1)[1].lower()


class TrackCatalog:
    """Reads and writes catalog rows through an injected storage handle."""

    def __init__(self, handle: StorageHandle) -> None:
        self.handle = handle

    def _upsert(self, conn: ConnectionProtocol, track: Track) -> int:
        meta = track.metadata
        now = now_timestamp()
        values = (
            track.filename,
            meta.title,
            meta.artist,
            meta.album,
            meta.duration,
            meta.bitrate,
            meta.sample_rate,
            meta.channels,
            meta.file_size,
            meta.format,
        )

        cursor = conn.execute(
            "SELECT id FROM tracks WHERE file_path = ?", (track.file_path,)
        )
        row = cursor.fetchone()
        if row:
            conn.execute(
                """
                UPDATE tracks SET
                    filename = ?, title = ?, artist = ?, album = ?,
                    duration = ?, bitrate = ?, sample_rate = ?, channels = ?,
                    file_size = ?, format = ?, updated_at = ?
                WHERE id = ?
            """,
                values + (now, row["id"]),
            )
            return row["id"]

        cursor = conn.execute(
            """
            INSERT INTO tracks (
                filename, title, artist, album, duration, bitrate,
                sample_rate, channels, file_size, format,
                file_path, added_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            values
            + (track.file_path, track.added_at.isoformat(timespec="seconds"), now),
        )
        return cursor.lastrowid

    def upsert(self, track: Track) -> Track:
        """Insert a track or refresh its metadata, keyed by file path.

        Returns:
            The track carrying its catalog id

        Raises:
            PersistenceError: If the row could not be written
        """
        return self.upsert_many([track])[0]

    def upsert_many(self, tracks: Iterable[Track]) -> list[Track]:
        """Upsert several tracks in one transaction, preserving order."""
        tracks = list(tracks)
        saved = []
        try:
            with self.handle.connection() as conn:
                with transaction(conn):
                    for track in tracks:
                        saved.append(track.with_id(self._upsert(conn, track)))
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save tracks: {e}") from e

        logger.debug(f"Catalogued {len(saved)} tracks")
        return saved

    def get_by_id(self, track_id: int) -> Optional[Track]:
        with self.handle.connection() as conn:
            row = conn.execute(
                "SELECT * FROM tracks WHERE id = ?", (track_id,)
            ).fetchone()
            return row_to_track(row) if row else None

    def get_by_path(self, file_path: str) -> Optional[Track]:
        with self.handle.connection() as conn:
            row = conn.execute(
                "SELECT * FROM tracks WHERE file_path = ?", (file_path,)
            ).fetchone()
            return row_to_track(row) if row else None

    def all_tracks(self) -> list[Track]:
        with self.handle.connection() as conn:
            rows = conn.execute("SELECT * FROM tracks ORDER BY filename").fetchall()
            return [row_to_track(row) for row in rows]

    def remove(self, track_id: int) -> bool:
        """Delete a catalog entry and its playlist memberships.

        Playlists that lose a member are repacked to dense 1..N positions
        in the same transaction. The audio file is left untouched.

        Returns:
            True if the track existed
        """
        from audio_tagger.domain.playlists.store import repack_positions

        try:
            with self.handle.connection() as conn:
                with transaction(conn):
                    playlist_ids = [
                        row["playlist_id"]
                        for row in conn.execute(
                            "SELECT playlist_id FROM playlist_tracks WHERE track_id = ?",
                            (track_id,),
                        ).fetchall()
                    ]
                    cursor = conn.execute("DELETE FROM tracks WHERE id = ?", (track_id,))
                    deleted = cursor.rowcount > 0
                    for playlist_id in playlist_ids:
                        repack_positions(conn, playlist_id)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to remove track {track_id}: {e}") from e

        if deleted:
            logger.info(f"Removed track {track_id} from catalog")
        return deleted
