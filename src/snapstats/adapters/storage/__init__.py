"""Snapshot storage adapters."""

from snapstats.adapters.storage.in_memory import InMemorySnapshotStorage
from snapstats.adapters.storage.json_files import JsonSnapshotStorage
from snapstats.adapters.storage.sqlite import SQLiteSnapshotStorage

__all__ = [
    "InMemorySnapshotStorage",
    "JsonSnapshotStorage",
    "SQLiteSnapshotStorage",
]
