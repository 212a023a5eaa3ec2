"""
SQLite storage for the track catalog and playlists
"""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Union

from loguru import logger

from .db_adapter import ConnectionProtocol, StorageHandle

# Database schema version for migrations
SCHEMA_VERSION = 1

MEMORY_PATH = ":memory:"


class SqliteDatabase:
    """Storage handle backed by a SQLite file.

    Each connection() call opens a fresh connection for on-disk databases.
    An in-memory database keeps one shared connection, since every new
    connection to ":memory:" would see an empty database; access to it is
    serialized with a lock.
    """

    def __init__(self, path: Union[str, Path], timeout: float = 30.0) -> None:
        self.path = str(path)
        self.timeout = timeout
        self._shared: Optional[sqlite3.Connection] = None
        self._shared_lock = threading.RLock()
        if self.path == MEMORY_PATH:
            self._shared = self._connect()

    def _connect(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are opened explicitly with BEGIN
        conn = sqlite3.connect(
            self.path,
            timeout=self.timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        if self.path != MEMORY_PATH:
            # WAL mode allows reads during writes
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper cleanup."""
        if self._shared is not None:
            with self._shared_lock:
                yield self._shared
            return

        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def close(self) -> None:
        if self._shared is not None:
            self._shared.close()
            self._shared = None


@contextmanager
def transaction(conn: ConnectionProtocol) -> Iterator[ConnectionProtocol]:
    """Run a block of statements atomically, rolling back on any error."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()


def now_timestamp() -> str:
    """Timestamp format stored in every *_at column."""
    return datetime.now().isoformat(timespec="seconds")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def init_database(handle: StorageHandle) -> None:
    """Initialize the database with required tables."""
    path = getattr(handle, "path", None)
    if path and path != MEMORY_PATH:
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    with handle.connection() as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            )
        """)

        # Track catalog keyed by file path
        conn.execute("""
            CREATE TABLE IF NOT EXISTS tracks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                file_path TEXT UNIQUE NOT NULL,
                filename TEXT NOT NULL,
                title TEXT,
                artist TEXT,
                album TEXT,
                duration REAL NOT NULL DEFAULT 0,
                bitrate INTEGER NOT NULL DEFAULT 0,
                sample_rate INTEGER NOT NULL DEFAULT 0,
                channels INTEGER NOT NULL DEFAULT 0,
                file_size INTEGER NOT NULL DEFAULT 0,
                format TEXT,
                added_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS playlists (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL CHECK (length(trim(title)) > 0),
                description TEXT,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """)

        # Membership rows: position is dense 1..N per playlist
        conn.execute("""
            CREATE TABLE IF NOT EXISTS playlist_tracks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                playlist_id INTEGER NOT NULL,
                track_id INTEGER NOT NULL,
                position INTEGER NOT NULL,
                added_at TIMESTAMP NOT NULL,
                FOREIGN KEY (playlist_id) REFERENCES playlists (id) ON DELETE CASCADE,
                FOREIGN KEY (track_id) REFERENCES tracks (id) ON DELETE CASCADE,
                UNIQUE (playlist_id, position),
                UNIQUE (playlist_id, track_id)
            )
        """)

        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_playlist_tracks_track_id ON playlist_tracks (track_id)"
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_tracks_artist ON tracks (artist)")

        cursor = conn.execute("SELECT MAX(version) as version FROM schema_version")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] else 0

        if current_version < SCHEMA_VERSION:
            logger.info(
                f"Database schema upgraded from v{current_version} to v{SCHEMA_VERSION}"
            )
            conn.execute("DELETE FROM schema_version")
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
