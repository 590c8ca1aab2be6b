"""SQLite snapshot storage adapter using aiosqlite."""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from collections.abc import Sequence
from typing import Any

from snapstats.adapters.storage.sqlite_base import (
    AsyncConnectionManager,
    SyncConnectionManager,
)
from snapstats.core.encoding.records import encode_records, load_records
from snapstats.core.errors import SnapshotNotFoundError, SnapshotStorageError
from snapstats.core.models import SnapshotInfo

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    number INTEGER PRIMARY KEY,
    timestamp REAL NOT NULL,
    comment TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS snapshot_records (
    number INTEGER NOT NULL REFERENCES snapshots(number),
    label TEXT NOT NULL,
    records TEXT NOT NULL,
    PRIMARY KEY (number, label)
);
"""

_NEXT_NUMBER = "SELECT COALESCE(MAX(number) + 1, 0) FROM snapshots"

_INSERT_SNAPSHOT = """
INSERT INTO snapshots (number, timestamp, comment)
VALUES (?, ?, ?)
"""

_SELECT_SNAPSHOTS = """
SELECT number, timestamp, comment
FROM snapshots
ORDER BY number ASC
"""

_SELECT_SNAPSHOT = """
SELECT number, timestamp, comment
FROM snapshots
WHERE number = ?
"""

_UPSERT_RECORDS = """
INSERT OR REPLACE INTO snapshot_records (number, label, records)
VALUES (?, ?, ?)
"""

_SELECT_RECORDS = """
SELECT records
FROM snapshot_records
WHERE number = ? AND label = ?
"""


def _to_info(row: Any) -> SnapshotInfo:
    return SnapshotInfo(number=row[0], timestamp=row[1], comment=row[2])


def _read_error(number: int, label: str, exc: sqlite3.Error) -> SnapshotStorageError:
    return SnapshotStorageError(
        f"Unable to read '{label}' of snapshot {number}: {exc}"
    )


class SQLiteSnapshotStorage:
    """SQLite implementation of SnapshotStoragePort.

    Every snapshot is a row of the snapshots table; the records of each label
    are stored as one JSON document. Sync methods (list_sync, load_sync)
    read the same file for callers without an event loop.

    For :memory: databases the async and sync methods see separate
    databases.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._async_manager = AsyncConnectionManager(db_path, _SCHEMA)
        self._sync_manager = SyncConnectionManager(db_path, _SCHEMA)

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        await self._async_manager.close()

    async def create(self, comment: str = "") -> SnapshotInfo:
        """Register a new snapshot numbered after the highest existing one."""
        try:
            async with self._async_manager.connection() as db:
                async with db.execute(_NEXT_NUMBER) as cursor:
                    row = await cursor.fetchone()
                number = row[0] if row else 0
                info = SnapshotInfo(
                    number=number, timestamp=time.time(), comment=comment
                )
                await db.execute(
                    _INSERT_SNAPSHOT, (info.number, info.timestamp, info.comment)
                )
                await db.commit()
        except sqlite3.Error as exc:
            raise SnapshotStorageError(
                f"Unable to create snapshot in {self._db_path}: {exc}"
            ) from exc
        logger.info("created snapshot %d", info.number)
        return info

    async def list(self) -> list[SnapshotInfo]:
        """Return all snapshots, ordered by number ascending."""
        try:
            async with self._async_manager.connection() as db:
                async with db.execute(_SELECT_SNAPSHOTS) as cursor:
                    return [_to_info(row) async for row in cursor]
        except sqlite3.Error as exc:
            raise SnapshotStorageError(
                f"Unable to read snapshots from {self._db_path}: {exc}"
            ) from exc

    async def get(self, number: int) -> SnapshotInfo:
        try:
            async with self._async_manager.connection() as db:
                async with db.execute(_SELECT_SNAPSHOT, (number,)) as cursor:
                    row = await cursor.fetchone()
        except sqlite3.Error as exc:
            raise SnapshotStorageError(
                f"Unable to read snapshot {number} from {self._db_path}: {exc}"
            ) from exc
        if row is None:
            raise SnapshotNotFoundError(number)
        return _to_info(row)

    async def save(self, number: int, label: str, records: Sequence[Any]) -> None:
        """Store (or replace) the records of a label in a snapshot."""
        document = json.dumps(encode_records(label, records))
        try:
            async with self._async_manager.connection() as db:
                await db.execute(_UPSERT_RECORDS, (number, label, document))
                await db.commit()
        except sqlite3.Error as exc:
            raise SnapshotStorageError(
                f"Unable to write '{label}' of snapshot {number}: {exc}"
            ) from exc

    async def load(self, number: int, label: str) -> list[Any]:
        await self.get(number)
        try:
            async with self._async_manager.connection() as db:
                async with db.execute(_SELECT_RECORDS, (number, label)) as cursor:
                    row = await cursor.fetchone()
        except sqlite3.Error as exc:
            raise _read_error(number, label, exc) from exc
        if row is None:
            raise SnapshotNotFoundError(number, label)
        return load_records(number, label, row[0])

    # --- Sync methods ---

    def list_sync(self) -> list[SnapshotInfo]:
        """Synchronous list for non-async contexts."""
        try:
            with self._sync_manager.connection() as conn:
                return [_to_info(row) for row in conn.execute(_SELECT_SNAPSHOTS)]
        except sqlite3.Error as exc:
            raise SnapshotStorageError(
                f"Unable to read snapshots from {self._db_path}: {exc}"
            ) from exc

    def load_sync(self, number: int, label: str) -> list[Any]:
        """Synchronous load for non-async contexts."""
        try:
            with self._sync_manager.connection() as conn:
                if conn.execute(_SELECT_SNAPSHOT, (number,)).fetchone() is None:
                    raise SnapshotNotFoundError(number)
                row = conn.execute(_SELECT_RECORDS, (number, label)).fetchone()
        except sqlite3.Error as exc:
            raise _read_error(number, label, exc) from exc
        if row is None:
            raise SnapshotNotFoundError(number, label)
        return load_records(number, label, row[0])
