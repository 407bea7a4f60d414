"""Embedded store: a SQLite connection with sqlite-vec loaded.

The store lives in memory while a pipeline runs. Snapshots are gzip
compressed images of the database file, written with the SQLite backup API.
"""

import gzip
import shutil
import sqlite3
import tempfile
import uuid
import zlib
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Sequence, Union

import pendulum
import sqlite_vec

from ..errors import StoreError

PathLike = Union[str, Path]


def _connect(database: str = ":memory:") -> sqlite3.Connection:
    """Open a connection in autocommit mode with extensions and FKs enabled."""
    conn = sqlite3.connect(database, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.enable_load_extension(True)
    sqlite_vec.load(conn)
    conn.enable_load_extension(False)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def to_db_timestamp(value: datetime) -> str:
    """Serialize a datetime as UTC ISO-8601 with microseconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def from_db_timestamp(value: str) -> datetime:
    """Parse a stored timestamp back into an aware datetime."""
    return pendulum.parse(value).in_timezone("UTC")


class Store:
    """Handle over the persisted store.

    Exposes parameterized ``query``/``execute`` primitives and a scoped
    ``transaction``. The pipeline owns the lifecycle; steps must not close it.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self._closed = False

    @classmethod
    def create(cls) -> "Store":
        """Create an empty in-memory store (schema not initialized)."""
        return cls(_connect())

    @classmethod
    def from_file(cls, path: PathLike) -> "Store":
        """Load a snapshot written by ``dump_to_file`` into a new in-memory store."""
        path = Path(path)
        if not path.exists():
            raise StoreError(f"Snapshot not found: {path}")

        store = cls.create()
        try:
            with tempfile.TemporaryDirectory() as tmp:
                raw_path = Path(tmp) / "snapshot.db"
                with gzip.open(path, "rb") as src, open(raw_path, "wb") as dst:
                    shutil.copyfileobj(src, dst)

                source = sqlite3.connect(raw_path)
                try:
                    source.backup(store.conn)
                finally:
                    source.close()

            if not store.table_exists("article"):
                raise StoreError(f"Snapshot has no article table: {path}")
        except (OSError, EOFError, zlib.error, sqlite3.DatabaseError) as e:
            store.close()
            raise StoreError(f"Could not load snapshot {path}: {e}") from e
        except StoreError:
            store.close()
            raise

        return store

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Execute a parameterized statement and return rows as dicts."""
        cur = self.conn.execute(sql, params)
        return [dict(row) for row in cur.fetchall()]

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Execute a parameterized statement; returns the affected row count."""
        cur = self.conn.execute(sql, params)
        return cur.rowcount

    def executescript(self, sql: str) -> None:
        """Execute several statements at once (no parameters)."""
        if self.conn.in_transaction:
            # sqlite3 commits a pending transaction before running a script
            raise StoreError("executescript cannot run inside a transaction")
        self.conn.executescript(sql)

    @contextmanager
    def transaction(self) -> Generator["Store", None, None]:
        """Scoped transaction: commit on exit, roll back on any exception.

        Nested use creates a savepoint.
        """
        if self.conn.in_transaction:
            name = f"sp_{uuid.uuid4().hex}"
            self.conn.execute(f"SAVEPOINT {name}")
            try:
                yield self
            except BaseException:
                self.conn.execute(f"ROLLBACK TO {name}")
                self.conn.execute(f"RELEASE {name}")
                raise
            self.conn.execute(f"RELEASE {name}")
            return

        self.conn.execute("BEGIN")
        try:
            yield self
        except BaseException:
            self.conn.execute("ROLLBACK")
            raise
        self.conn.execute("COMMIT")

    def table_exists(self, name: str) -> bool:
        """Check whether a table is present."""
        rows = self.query(
            "SELECT name FROM sqlite_master WHERE type IN ('table', 'view') AND name = ?",
            (name,),
        )
        return bool(rows)

    def get_meta(self, key: str) -> Optional[str]:
        """Read a value from the store_meta table."""
        if not self.table_exists("store_meta"):
            return None
        rows = self.query("SELECT value FROM store_meta WHERE key = ?", (key,))
        return rows[0]["value"] if rows else None

    @property
    def dimensions(self) -> Optional[int]:
        """Embedding dimensionality the schema was created with."""
        value = self.get_meta("embedding_dimensions")
        return int(value) if value is not None else None

    def dump_to_file(self, path: PathLike) -> Path:
        """Write a gzip-compressed snapshot of the whole store."""
        if self.conn.in_transaction:
            raise StoreError("Cannot snapshot the store with a transaction open")

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory() as tmp:
            raw_path = Path(tmp) / "snapshot.db"
            target = sqlite3.connect(raw_path)
            try:
                self.conn.backup(target)
            finally:
                target.close()

            with open(raw_path, "rb") as src, gzip.open(path, "wb") as dst:
                shutil.copyfileobj(src, dst)

        return path

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Close the underlying connection. Safe to call twice."""
        if not self._closed:
            self.conn.close()
            self._closed = True

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
