"""Snapshot storage in a directory of JSON files.

Layout::

    <directory>/snapshot.index     CSV: number,ISO timestamp,comment
    <directory>/<number>/<label>.json
"""

from __future__ import annotations

import asyncio
import csv
import json
import logging
import time
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from snapstats.core.encoding.records import encode_records, load_records
from snapstats.core.errors import SnapshotNotFoundError, SnapshotStorageError
from snapstats.core.models import SnapshotInfo

logger = logging.getLogger(__name__)

INDEX_FILE = "snapshot.index"


class JsonSnapshotStorage:
    """Directory implementation of SnapshotStoragePort.

    File access runs in a worker thread so the event loop stays free for
    the HTTP fan-out of the next snapshot.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def index_path(self) -> Path:
        return self._directory / INDEX_FILE

    async def create(self, comment: str = "") -> SnapshotInfo:
        """Append a new snapshot to the index and create its directory."""
        return await asyncio.to_thread(self._create, comment)

    async def list(self) -> list[SnapshotInfo]:
        """Return all snapshots, ordered by number ascending."""
        return await asyncio.to_thread(self._read_index)

    async def get(self, number: int) -> SnapshotInfo:
        for info in await self.list():
            if info.number == number:
                return info
        raise SnapshotNotFoundError(number)

    async def save(self, number: int, label: str, records: Sequence[Any]) -> None:
        document = encode_records(label, records)
        await asyncio.to_thread(self._write_label, number, label, document)

    async def load(self, number: int, label: str) -> list[Any]:
        await self.get(number)
        text = await asyncio.to_thread(self._read_label, number, label)
        return load_records(number, label, text)

    def _create(self, comment: str) -> SnapshotInfo:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            existing = self._read_index()
            number = existing[-1].number + 1 if existing else 0
            info = SnapshotInfo(number=number, timestamp=time.time(), comment=comment)
            (self._directory / str(number)).mkdir(exist_ok=True)
            with self.index_path.open("a", newline="") as index:
                csv.writer(index).writerow(
                    [
                        info.number,
                        datetime.fromtimestamp(info.timestamp).isoformat(),
                        info.comment,
                    ]
                )
        except OSError as exc:
            raise SnapshotStorageError(
                f"Unable to create snapshot in {self._directory}: {exc}"
            ) from exc
        logger.info("created snapshot %d in %s", info.number, self._directory)
        return info

    def _read_index(self) -> list[SnapshotInfo]:
        if not self.index_path.exists():
            return []
        snapshots = []
        with self.index_path.open(newline="") as index:
            for row in csv.reader(index):
                if len(row) < 2:
                    continue
                try:
                    snapshots.append(
                        SnapshotInfo(
                            number=int(row[0]),
                            timestamp=datetime.fromisoformat(row[1]).timestamp(),
                            comment=row[2] if len(row) > 2 else "",
                        )
                    )
                except ValueError:
                    logger.warning("skipping malformed index line: %r", row)
        return sorted(snapshots, key=lambda info: info.number)

    def _label_path(self, number: int, label: str) -> Path:
        return self._directory / str(number) / f"{label}.json"

    def _write_label(
        self, number: int, label: str, document: list[dict[str, Any]]
    ) -> None:
        path = self._label_path(number, label)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(document))
        except OSError as exc:
            raise SnapshotStorageError(
                f"Unable to write '{label}' of snapshot {number}: {exc}"
            ) from exc

    def _read_label(self, number: int, label: str) -> str:
        try:
            return self._label_path(number, label).read_text()
        except FileNotFoundError:
            raise SnapshotNotFoundError(number, label) from None
