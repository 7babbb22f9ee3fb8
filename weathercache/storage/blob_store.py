"""String-keyed blob stores backing the favorites collection."""

import sqlite3
from typing import Protocol

from weathercache.errors import StorageError


class BlobStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class SqliteBlobStore:
    """Blob store on the ``blobs`` table created by the v001 migration."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, key: str) -> str | None:
        try:
            row = self.conn.execute(
                "SELECT value FROM blobs WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read blob {key!r}: {e}") from e
        if row is None:
            return None
        return row[0]

    def set(self, key: str, value: str) -> None:
        try:
            self.conn.execute(
                "INSERT INTO blobs (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "updated_at = CURRENT_TIMESTAMP",
                (key, value),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write blob {key!r}: {e}") from e


class InMemoryBlobStore:
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
