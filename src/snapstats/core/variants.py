"""Diffs of node-exporter metrics, masters, tablet servers and vars.

These are instances of TwoPhaseDiff with simpler records than the cluster
metrics: fields are compared one by one, and each variant has its own rule
for which rows are left out.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import NamedTuple, TypeVar

from snapstats.core.diff import DiffRow, TwoPhaseDiff
from snapstats.core.models import (
    MasterEntry,
    NodeExporterSample,
    TabletServerEntry,
    Var,
    VarsEntry,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", MasterEntry, TabletServerEntry)


# --- node exporter ---


class NodeExporterKey(NamedTuple):
    hostname_port: str
    name: str
    labels: str


@dataclass
class NodeExporterDiffRow(DiffRow):
    exporter_type: str = "counter"
    category: str = "all"
    first_value: float = 0.0
    second_value: float = 0.0

    @property
    def delta(self) -> float:
        return self.second_value - self.first_value


class NodeExporterPolicy:
    def key(self, item: NodeExporterSample) -> NodeExporterKey:
        return NodeExporterKey(item.hostname_port, item.name, item.labels)

    def timestamp(self, item: NodeExporterSample) -> float:
        return item.timestamp

    def create(self, item: NodeExporterSample) -> NodeExporterDiffRow:
        return NodeExporterDiffRow(
            exporter_type=item.exporter_type, category=item.category
        )

    def merge_first(self, row: NodeExporterDiffRow, item: NodeExporterSample) -> None:
        row.first_value += item.value

    def merge_second(self, row: NodeExporterDiffRow, item: NodeExporterSample) -> None:
        row.second_value += item.value

    def is_summable(self, key: NodeExporterKey) -> bool:
        return False

    def is_unchanged(self, row: NodeExporterDiffRow) -> bool:
        if row.exporter_type == "gauge":
            return False
        return row.delta == 0


class NodeExporterDiff:
    """Diff of node-exporter samples keyed by host, name and label string."""

    def __init__(self) -> None:
        self._diff: TwoPhaseDiff[
            NodeExporterKey, NodeExporterSample, NodeExporterDiffRow
        ] = TwoPhaseDiff(NodeExporterPolicy(), name="node_exporter")

    def ingest_first(self, samples: Iterable[NodeExporterSample]) -> None:
        self._diff.ingest_first(samples)

    def ingest_second(
        self, samples: Iterable[NodeExporterSample], first_snapshot_time: float
    ) -> None:
        self._diff.ingest_second(samples, first_snapshot_time)

    @property
    def rows(self) -> Mapping[NodeExporterKey, NodeExporterDiffRow]:
        return self._diff.rows

    def changed(self) -> list[tuple[NodeExporterKey, NodeExporterDiffRow]]:
        return self._diff.changed()


# --- masters ---


class MasterChange(Enum):
    ADDED = "+"
    REMOVED = "-"
    CHANGED = "*"
    UNCHANGED = "="


def _join_addresses(addresses: Iterable[str]) -> str:
    return "".join(f"{address}," for address in addresses)


@dataclass(frozen=True)
class MasterFields:
    """The compared fields of a master; all zero when the master was absent."""

    instance_seqno: int = 0
    start_time_us: int = 0
    role: str = ""
    placement_cloud: str = ""
    placement_region: str = ""
    placement_zone: str = ""
    placement_uuid: str = ""
    rpc_addresses: str = ""
    http_addresses: str = ""

    @classmethod
    def from_entry(cls, entry: MasterEntry) -> "MasterFields":
        return cls(
            instance_seqno=entry.instance_seqno,
            start_time_us=entry.start_time_us,
            role=entry.role,
            placement_cloud=entry.placement_cloud,
            placement_region=entry.placement_region,
            placement_zone=entry.placement_zone,
            placement_uuid=entry.placement_uuid,
            rpc_addresses=_join_addresses(entry.private_rpc_addresses),
            http_addresses=_join_addresses(entry.http_addresses),
        )


# placement_uuid is informational only.
_MASTER_COMPARED_FIELDS = tuple(
    f.name for f in fields(MasterFields) if f.name != "placement_uuid"
)


@dataclass
class MasterDiffRow(DiffRow):
    first: MasterFields = field(default_factory=MasterFields)
    second: MasterFields = field(default_factory=MasterFields)

    def changed_fields(self) -> list[str]:
        """Names of the compared fields that differ between the snapshots."""
        return [
            name
            for name in _MASTER_COMPARED_FIELDS
            if getattr(self.first, name) != getattr(self.second, name)
        ]


def classify_master(row: MasterDiffRow) -> MasterChange:
    """Classify a master row as added, removed, changed or unchanged."""
    if row.second.instance_seqno == 0:
        return MasterChange.REMOVED
    if row.first.instance_seqno == 0:
        return MasterChange.ADDED
    if not row.changed_fields():
        return MasterChange.UNCHANGED
    return MasterChange.CHANGED


class MastersPolicy:
    def key(self, item: MasterEntry) -> str:
        return item.permanent_uuid

    def timestamp(self, item: MasterEntry) -> float:
        return item.timestamp

    def create(self, item: MasterEntry) -> MasterDiffRow:
        return MasterDiffRow()

    def merge_first(self, row: MasterDiffRow, item: MasterEntry) -> None:
        row.first = MasterFields.from_entry(item)

    def merge_second(self, row: MasterDiffRow, item: MasterEntry) -> None:
        row.second = MasterFields.from_entry(item)

    def is_summable(self, key: str) -> bool:
        return False

    def is_unchanged(self, row: MasterDiffRow) -> bool:
        return classify_master(row) is MasterChange.UNCHANGED


def _leader_view(entries: Iterable[E], leader: str) -> list[E]:
    return [entry for entry in entries if entry.hostname_port == leader]


class MastersDiff:
    """Diff of the master list as reported by the master leader.

    Only the leader's view is authoritative, so only entries fetched from the
    leader take part. If either snapshot has no leader, master_found is False
    and the diff has no rows.
    """

    def __init__(self) -> None:
        self._diff: TwoPhaseDiff[str, MasterEntry, MasterDiffRow] = TwoPhaseDiff(
            MastersPolicy(), name="masters"
        )
        self._first_leader = ""
        self._second_leader = ""

    @property
    def master_found(self) -> bool:
        return bool(self._first_leader) and bool(self._second_leader)

    def ingest_first(self, entries: Iterable[MasterEntry], leader: str) -> None:
        """Accumulate the first snapshot's master list.

        Args:
            entries: Master entries fetched from all servers.
            leader: hostname:port of the master leader, "" when unknown.
        """
        self._first_leader = leader
        self._diff.ingest_first(_leader_view(entries, leader) if leader else [])

    def ingest_second(
        self,
        entries: Iterable[MasterEntry],
        leader: str,
        first_snapshot_time: float,
    ) -> None:
        self._second_leader = leader
        if not self.master_found:
            logger.info("master leader not found, masters diff is empty")
            self._diff.ingest_second([], first_snapshot_time)
            return
        self._diff.ingest_second(_leader_view(entries, leader), first_snapshot_time)

    @property
    def rows(self) -> Mapping[str, MasterDiffRow]:
        return self._diff.rows

    def changed(self) -> list[tuple[str, MasterDiffRow]]:
        return self._diff.changed()


# --- tablet servers ---


class TabletServerChange(Enum):
    ADDED = "+"
    REMOVED = "-"
    CHANGED = "*"
    REBOOTED = "!"
    UNCHANGED = "="


@dataclass
class TabletServerDiffRow(DiffRow):
    first_status: str = ""
    first_uptime_seconds: int = 0
    second_status: str = ""
    second_uptime_seconds: int = 0


def classify_tablet_server(row: TabletServerDiffRow) -> TabletServerChange:
    """Classify a tablet server row.

    A lower uptime in the second snapshot means the server restarted in
    between; that is reported as REBOOTED rather than CHANGED.
    """
    if (
        row.first_status == row.second_status
        and row.first_uptime_seconds <= row.second_uptime_seconds
    ):
        return TabletServerChange.UNCHANGED
    if row.second_status == "":
        return TabletServerChange.REMOVED
    if row.first_status == "":
        return TabletServerChange.ADDED
    if row.second_uptime_seconds < row.first_uptime_seconds:
        return TabletServerChange.REBOOTED
    return TabletServerChange.CHANGED


class TabletServersPolicy:
    def key(self, item: TabletServerEntry) -> str:
        return item.tablet_server

    def timestamp(self, item: TabletServerEntry) -> float:
        return item.timestamp

    def create(self, item: TabletServerEntry) -> TabletServerDiffRow:
        return TabletServerDiffRow()

    def merge_first(self, row: TabletServerDiffRow, item: TabletServerEntry) -> None:
        row.first_status = item.status
        row.first_uptime_seconds = item.uptime_seconds

    def merge_second(self, row: TabletServerDiffRow, item: TabletServerEntry) -> None:
        row.second_status = item.status
        row.second_uptime_seconds = item.uptime_seconds

    def is_summable(self, key: str) -> bool:
        return False

    def is_unchanged(self, row: TabletServerDiffRow) -> bool:
        return classify_tablet_server(row) is TabletServerChange.UNCHANGED


class TabletServersDiff:
    """Diff of the tablet server list as reported by the master leader."""

    def __init__(self) -> None:
        self._diff: TwoPhaseDiff[str, TabletServerEntry, TabletServerDiffRow] = (
            TwoPhaseDiff(TabletServersPolicy(), name="tablet_servers")
        )
        self._first_leader = ""
        self._second_leader = ""

    @property
    def master_found(self) -> bool:
        return bool(self._first_leader) and bool(self._second_leader)

    def ingest_first(self, entries: Iterable[TabletServerEntry], leader: str) -> None:
        self._first_leader = leader
        self._diff.ingest_first(_leader_view(entries, leader) if leader else [])

    def ingest_second(
        self,
        entries: Iterable[TabletServerEntry],
        leader: str,
        first_snapshot_time: float,
    ) -> None:
        self._second_leader = leader
        if not self.master_found:
            logger.info("master leader not found, tablet servers diff is empty")
            self._diff.ingest_second([], first_snapshot_time)
            return
        self._diff.ingest_second(_leader_view(entries, leader), first_snapshot_time)

    @property
    def rows(self) -> Mapping[str, TabletServerDiffRow]:
        return self._diff.rows

    def changed(self) -> list[tuple[str, TabletServerDiffRow]]:
        return self._diff.changed()


# --- vars ---


class VarKey(NamedTuple):
    hostname_port: str
    name: str


@dataclass(frozen=True)
class VarObservation:
    hostname_port: str
    timestamp: float
    var: Var


@dataclass
class VarDiffRow(DiffRow):
    """None means the flag was not present in that snapshot."""

    first_value: str | None = None
    first_type: str | None = None
    second_value: str | None = None
    second_type: str | None = None


class VarsPolicy:
    def key(self, item: VarObservation) -> VarKey:
        return VarKey(item.hostname_port, item.var.name)

    def timestamp(self, item: VarObservation) -> float:
        return item.timestamp

    def create(self, item: VarObservation) -> VarDiffRow:
        return VarDiffRow()

    def merge_first(self, row: VarDiffRow, item: VarObservation) -> None:
        row.first_value = item.var.value
        row.first_type = item.var.var_type

    def merge_second(self, row: VarDiffRow, item: VarObservation) -> None:
        row.second_value = item.var.value
        row.second_type = item.var.var_type

    def is_summable(self, key: VarKey) -> bool:
        return False

    def is_unchanged(self, row: VarDiffRow) -> bool:
        # A flag seen in only one snapshot means the server was unavailable
        # during the other one, not that the flag was added or removed.
        if row.first_value is None or row.second_value is None:
            return True
        return (
            row.first_value == row.second_value and row.first_type == row.second_type
        )


def _observations(entries: Iterable[VarsEntry]) -> Iterable[VarObservation]:
    for entry in entries:
        for var in entry.flags:
            yield VarObservation(entry.hostname_port, entry.timestamp, var)


class VarsDiff:
    """Diff of runtime flags keyed by host and flag name."""

    def __init__(self) -> None:
        self._diff: TwoPhaseDiff[VarKey, VarObservation, VarDiffRow] = TwoPhaseDiff(
            VarsPolicy(), name="vars"
        )

    def ingest_first(self, entries: Iterable[VarsEntry]) -> None:
        self._diff.ingest_first(_observations(entries))

    def ingest_second(
        self, entries: Iterable[VarsEntry], first_snapshot_time: float
    ) -> None:
        self._diff.ingest_second(_observations(entries), first_snapshot_time)

    @property
    def rows(self) -> Mapping[VarKey, VarDiffRow]:
        return self._diff.rows

    def changed(self) -> list[tuple[VarKey, VarDiffRow]]:
        return self._diff.changed()
