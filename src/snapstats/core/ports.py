"""Port interfaces for snapshot storage and HTTP collection.

These protocols define the contracts that adapters must implement.
The core domain depends only on these interfaces, not concrete implementations.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from snapstats.core.models import (
    Entity,
    LeaderStatus,
    MasterEntry,
    NodeExporterSample,
    RawPayload,
    SnapshotInfo,
    TabletServerEntry,
    VarsEntry,
)


@runtime_checkable
class SnapshotStoragePort(Protocol):
    """Port for snapshot storage operations.

    Adapters implementing this protocol keep numbered snapshots, each holding
    one list of records per label.
    Examples: JsonSnapshotStorage, SQLiteSnapshotStorage, InMemorySnapshotStorage.
    """

    async def create(self, comment: str = "") -> SnapshotInfo:
        """Register a new snapshot and return it.

        Numbering starts at 0 and continues from the highest existing number.
        """
        ...

    async def list(self) -> list[SnapshotInfo]:
        """Return all snapshots, ordered by number ascending."""
        ...

    async def get(self, number: int) -> SnapshotInfo:
        """Return one snapshot.

        Raises:
            SnapshotNotFoundError: If the number does not exist.
        """
        ...

    async def save(self, number: int, label: str, records: Sequence[Any]) -> None:
        """Store the records of a label in a snapshot."""
        ...

    async def load(self, number: int, label: str) -> list[Any]:
        """Load the records of a label from a snapshot.

        Raises:
            SnapshotNotFoundError: If the snapshot or the label does not exist.
        """
        ...


@runtime_checkable
class FetchPort(Protocol):
    """Port for fetching one endpoint from many servers."""

    async def fetch(
        self,
        hosts: Sequence[str],
        ports: Sequence[str],
        endpoint: str,
        parallel: int,
    ) -> list[RawPayload]:
        """Fetch an endpoint from every host and port combination.

        Args:
            hosts: Hostnames or addresses.
            ports: Ports to fetch from on every host.
            endpoint: Path without leading slash (e.g., api/v1/varz).
            parallel: Maximum number of concurrent requests.

        Returns:
            One payload per host and port. Failed fetches have an empty body.
        """
        ...


@runtime_checkable
class CollectorPort(Protocol):
    """Port for collecting every kind of record a snapshot holds.

    Each method returns the records of all configured servers; a server
    that fails contributes nothing.
    """

    async def metrics(self) -> list[Entity]:
        """Metric entities from the database ports."""
        ...

    async def node_exporter(self) -> list[NodeExporterSample]:
        """Samples from the node-exporter port."""
        ...

    async def masters(self) -> list[MasterEntry]:
        """Master lists as each master reports them."""
        ...

    async def tablet_servers(self) -> list[TabletServerEntry]:
        """Tablet server lists as each master reports them."""
        ...

    async def vars(self) -> list[VarsEntry]:
        """Runtime flags of every server."""
        ...

    async def leader_statuses(self) -> list[LeaderStatus]:
        """Is-leader answers of every server."""
        ...
