"""SQLite-backed point store for recorded locations.

The store creates its table lazily: every public operation first calls
:meth:`PointStore.initialize`, which runs the schema setup at most once even
when several threads hit a fresh store at the same time.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
import sqlite3
import threading
from datetime import datetime, timezone
from os import PathLike
from pathlib import Path
from typing import Iterator, List

from .config import DATA_DIR, DB_FILENAME
from .errors import StorageError
from .models import LocationRecord

LOGGER = logging.getLogger(__name__)

TABLE_NAME = "location_points"
MEMORY_PATH = ":memory:"

PathInput = str | Path | PathLike[str]

_CREATE_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    captured_at_utc TEXT NOT NULL
)
"""


def default_db_path() -> Path:
    """Return the database location inside the configured data directory."""

    return DATA_DIR / DB_FILENAME


def _to_utc_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_utc_text(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class PointStore:
    """Append/list/clear persistence for :class:`LocationRecord` rows."""

    def __init__(self, db_path: PathInput | None = None) -> None:
        if db_path is None:
            db_path = default_db_path()
        self._db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None
        self._initialized = False
        self._init_lock = threading.Lock()
        # sqlite3 connections are shared across threads; statements and their
        # commits must not interleave.
        self._conn_lock = threading.RLock()

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """Create the backing table once; safe under concurrent first use."""

        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            try:
                self._conn = self._connect()
                self._create_table()
            except (sqlite3.Error, OSError) as exc:
                raise StorageError(
                    f"Failed to initialise point store at {self._db_path}: {exc}"
                ) from exc
            self._initialized = True
            LOGGER.info("Point store ready at %s", self._db_path)

    def _connect(self) -> sqlite3.Connection:
        if self._db_path != MEMORY_PATH:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self._db_path, check_same_thread=False)

    def _open_connection(self) -> sqlite3.Connection:
        conn = self._conn
        if conn is None:
            raise StorageError("Point store is closed")
        return conn

    def _create_table(self) -> None:
        conn = self._open_connection()
        with self._conn_lock:
            conn.execute(_CREATE_TABLE_SQL)
            conn.commit()

    @contextmanager
    def _cursor(self, action: str) -> Iterator[sqlite3.Cursor]:
        self.initialize()
        conn = self._open_connection()
        with self._conn_lock:
            try:
                cursor = conn.cursor()
                try:
                    yield cursor
                    conn.commit()
                finally:
                    cursor.close()
            except sqlite3.Error as exc:
                conn.rollback()
                raise StorageError(f"Failed to {action}: {exc}") from exc

    def add(self, record: LocationRecord) -> int:
        """Persist ``record`` and return the id assigned by the database."""

        with self._cursor("add location point") as cursor:
            cursor.execute(
                f"INSERT INTO {TABLE_NAME} (latitude, longitude, captured_at_utc)"
                " VALUES (?, ?, ?)",
                (
                    float(record.latitude),
                    float(record.longitude),
                    _to_utc_text(record.captured_at_utc),
                ),
            )
            record_id = cursor.lastrowid
        if record_id is None:
            raise StorageError("Database did not assign an id to the new point")
        LOGGER.debug(
            "Stored point id=%s lat=%.5f lon=%.5f",
            record_id,
            record.latitude,
            record.longitude,
        )
        return int(record_id)

    def list_all(self) -> List[LocationRecord]:
        """Return every stored point, newest first."""

        with self._cursor("list location points") as cursor:
            cursor.execute(
                f"SELECT id, latitude, longitude, captured_at_utc FROM {TABLE_NAME}"
                " ORDER BY captured_at_utc DESC, id DESC"
            )
            rows = cursor.fetchall()
        return [
            LocationRecord(
                latitude=float(lat),
                longitude=float(lon),
                captured_at_utc=_from_utc_text(captured),
                id=int(row_id),
            )
            for row_id, lat, lon, captured in rows
        ]

    def count(self) -> int:
        with self._cursor("count location points") as cursor:
            cursor.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}")
            (total,) = cursor.fetchone()
        return int(total)

    def clear(self) -> int:
        """Delete every stored point and return how many rows were removed."""

        with self._cursor("clear location points") as cursor:
            cursor.execute(f"DELETE FROM {TABLE_NAME}")
            removed = cursor.rowcount
        LOGGER.info("Cleared %d stored point(s)", removed)
        return int(removed)

    def close(self) -> None:
        with self._init_lock:
            if self._conn is not None:
                with self._conn_lock:
                    self._conn.close()
                self._conn = None
            self._initialized = False


__all__ = ["PointStore", "default_db_path", "TABLE_NAME"]
