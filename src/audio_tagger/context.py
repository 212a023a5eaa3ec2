"""Application context for explicit dependency passing.

The context owns the storage handle and the components built on it, so
commands receive everything they need as one argument instead of reaching
into module-level state.
"""

from dataclasses import dataclass
from typing import Optional

from audio_tagger.core.config import Config
from audio_tagger.core.database import SqliteDatabase, init_database
from audio_tagger.domain.library.catalog import TrackCatalog
from audio_tagger.domain.library.metadata import MetadataReader, TagExtractor
from audio_tagger.domain.playlists.store import SqlitePlaylistStore


@dataclass
class AppContext:
    """Wired application components.

    Attributes:
        config: Application configuration
        database: Storage handle shared by the catalog and the store
        catalog: Track catalog
        store: Playlist repository
        reader: Metadata reader used for scans
    """

    config: Config
    database: SqliteDatabase
    catalog: TrackCatalog
    store: SqlitePlaylistStore
    reader: MetadataReader

    @classmethod
    def create(
        cls,
        config: Config,
        database: Optional[SqliteDatabase] = None,
        reader: Optional[MetadataReader] = None,
    ) -> "AppContext":
        """Open (and initialize) the database and build the components."""
        database = database or SqliteDatabase(config.database.resolved_path())
        init_database(database)
        return cls(
            config=config,
            database=database,
            catalog=TrackCatalog(database),
            store=SqlitePlaylistStore(database),
            reader=reader or TagExtractor(),
        )

    def close(self) -> None:
        self.database.close()
