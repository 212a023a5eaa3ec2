"""
Storage handle protocols.

Stores and catalogs receive a StorageHandle in their constructor instead of
reaching for a module-level connection. Any object whose connection() yields a
DB-API style connection with dict-like rows satisfies it.
"""

from contextlib import AbstractContextManager
from typing import Any, Iterable, Optional, Protocol


class CursorProtocol(Protocol):
    """Protocol for database cursor."""

    def fetchone(self) -> Optional[Any]: ...
    def fetchall(self) -> list[Any]: ...
    @property
    def lastrowid(self) -> Optional[int]: ...
    @property
    def rowcount(self) -> int: ...
    def close(self) -> None: ...


class ConnectionProtocol(Protocol):
    """Protocol for database connection."""

    def execute(self, query: str, params: Iterable[Any] = ()) -> CursorProtocol: ...
    def executemany(
        self, query: str, params: Iterable[Iterable[Any]]
    ) -> CursorProtocol: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
    def close(self) -> None: ...


class StorageHandle(Protocol):
    """Protocol for an injectable source of database connections."""

    def connection(self) -> AbstractContextManager[ConnectionProtocol]: ...
