"""Connection handling shared by the SQLite snapshot store."""

import asyncio
import sqlite3
import threading
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager

import aiosqlite

MEMORY = ":memory:"


class AsyncConnectionManager:
    """Manages async (aiosqlite) database connections.

    The schema is created on first use. For :memory: databases a single
    connection is kept open, since an in-memory database lives only as long
    as its connection.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._initialized = False
        self._init_lock: asyncio.Lock | None = None
        self._persistent_conn: aiosqlite.Connection | None = None

    def _get_lock(self) -> asyncio.Lock:
        # Created lazily so the lock binds to the running loop.
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            if self._db_path == MEMORY:
                self._persistent_conn = await aiosqlite.connect(MEMORY)
                await self._persistent_conn.executescript(self._schema)
            else:
                async with aiosqlite.connect(self._db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(self._schema)
            self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection; file-based connections are closed afterwards."""
        await self._ensure_initialized()
        if self._db_path == MEMORY:
            if self._persistent_conn is None:
                raise RuntimeError("Memory database connection not initialized")
            yield self._persistent_conn
            return
        db = await aiosqlite.connect(self._db_path)
        try:
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        """Close the persistent connection of a :memory: database."""
        if self._persistent_conn is not None:
            await self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False


class SyncConnectionManager:
    """Manages sync (sqlite3) database connections.

    For :memory: databases this is a separate database from the one behind
    AsyncConnectionManager; the two do not share data.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._initialized = False
        self._lock = threading.Lock()
        self._persistent_conn: sqlite3.Connection | None = None

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            if self._db_path == MEMORY:
                self._persistent_conn = sqlite3.connect(MEMORY)
                self._persistent_conn.executescript(self._schema)
            else:
                with sqlite3.connect(self._db_path) as db:
                    db.execute("PRAGMA journal_mode=WAL")
                    db.executescript(self._schema)
            self._initialized = True

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; file-based connections are closed afterwards."""
        self._ensure_initialized()
        if self._db_path == MEMORY:
            if self._persistent_conn is None:
                raise RuntimeError("Sync memory database connection not initialized")
            yield self._persistent_conn
            return
        conn = sqlite3.connect(self._db_path)
        try:
            yield conn
        finally:
            conn.close()
