"""In-memory snapshot storage adapter."""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

from snapstats.core.errors import SnapshotNotFoundError
from snapstats.core.models import SnapshotInfo


class InMemorySnapshotStorage:
    """In-memory implementation of SnapshotStoragePort.

    Keeps records as given, without encoding. Suitable for testing and for
    adhoc diffs where nothing needs to outlive the process.
    """

    def __init__(self) -> None:
        self._snapshots: dict[int, SnapshotInfo] = {}
        self._records: dict[tuple[int, str], list[Any]] = {}

    async def create(self, comment: str = "") -> SnapshotInfo:
        number = max(self._snapshots, default=-1) + 1
        info = SnapshotInfo(number=number, timestamp=time.time(), comment=comment)
        self._snapshots[number] = info
        return info

    async def list(self) -> list[SnapshotInfo]:
        return [self._snapshots[number] for number in sorted(self._snapshots)]

    async def get(self, number: int) -> SnapshotInfo:
        try:
            return self._snapshots[number]
        except KeyError:
            raise SnapshotNotFoundError(number) from None

    async def save(self, number: int, label: str, records: Sequence[Any]) -> None:
        await self.get(number)
        self._records[(number, label)] = list(records)

    async def load(self, number: int, label: str) -> list[Any]:
        await self.get(number)
        try:
            return list(self._records[(number, label)])
        except KeyError:
            raise SnapshotNotFoundError(number, label) from None
