# trustfeed/storage/sqlite.py
import os
import sqlite3
from pathlib import Path
from typing import Optional

from trustfeed.core.errors import StorageError, StorageNotFound, StorageReadError, StorageWriteError
from . import StorageBackend, StorageStat, DEFAULT_REGION_NAME


class SQLiteStorage(StorageBackend):
    """Named byte regions stored as BLOBs in one SQLite database."""

    def __init__(self, db_path: str | Path | None = None, name: str = DEFAULT_REGION_NAME):
        if db_path is None:
            env_path = os.environ.get("TRUSTFEED_DB_PATH")
            db_path = env_path if env_path else Path.cwd() / "trustfeed.db"

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = self.db_path.resolve()
        self.name = name

        self._conn: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self):
        self._conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_schema()

    def _create_schema(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS regions (
                name    TEXT PRIMARY KEY,
                data    BLOB NOT NULL
            )
        """)

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Storage connection is closed")
        return self._conn

    def _fetch(self) -> Optional[bytes]:
        row = self.conn.execute(
            "SELECT data FROM regions WHERE name = ?", (self.name,)
        ).fetchone()
        return bytes(row[0]) if row else None

    def stat(self) -> StorageStat:
        try:
            data = self._fetch()
        except sqlite3.Error as e:
            raise StorageReadError(f"Cannot stat region '{self.name}': {e}") from e
        if data is None:
            raise StorageNotFound(f"{self.db_path}#{self.name}")
        return StorageStat(size=len(data))

    def read(self, offset: int, length: int) -> bytes:
        try:
            data = self._fetch()
        except sqlite3.Error as e:
            raise StorageReadError(f"Cannot read region '{self.name}': {e}") from e
        if data is None:
            raise StorageNotFound(f"{self.db_path}#{self.name}")
        return data[offset:offset + length]

    def write(self, offset: int, data: bytes) -> None:
        try:
            self.conn.execute("BEGIN IMMEDIATE")
            current = bytearray(self._fetch() or b"")
            if len(current) < offset:
                current.extend(b"\x00" * (offset - len(current)))
            current[offset:offset + len(data)] = data
            self.conn.execute(
                "INSERT OR REPLACE INTO regions (name, data) VALUES (?, ?)",
                (self.name, bytes(current)),
            )
            self.conn.execute("COMMIT")
        except sqlite3.Error as e:
            if self.conn.in_transaction:
                self.conn.execute("ROLLBACK")
            raise StorageWriteError(f"Cannot write region '{self.name}': {e}") from e

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def list_regions(self) -> list[str]:
        cursor = self.conn.execute("SELECT name FROM regions ORDER BY name")
        return [row[0] for row in cursor.fetchall()]
