"""Core domain models for cluster diagnostic data.

A metric sample has exactly one of five shapes. The shape is decided when a
payload is parsed and never reinterpreted afterwards; consumers dispatch on
the class, not on the sample name.
"""

from dataclasses import dataclass, field

# Largest value that fits a signed 64-bit integer. Larger (unsigned) values
# are kept as RejectedU64 samples.
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1


@dataclass(frozen=True)
class Value:
    """An instantaneous counter or gauge.

    Attributes:
        name: Statistic name (e.g., rows_inserted).
        value: The measured value.
    """

    name: str
    value: int


@dataclass(frozen=True)
class CountSum:
    """A histogram-like aggregate.

    Only total_count and total_sum take part in diffing; the distribution
    fields are carried along for display.
    """

    name: str
    total_count: int
    total_sum: int
    min: int = 0
    mean: float = 0.0
    percentile_75: int = 0
    percentile_95: int = 0
    percentile_99: int = 0
    percentile_99_9: int = 0
    percentile_99_99: int = 0
    max: int = 0


@dataclass(frozen=True)
class CountSumRows:
    """Call count, total time (microseconds) and total rows of a statement."""

    name: str
    count: int
    sum: int
    rows: int


@dataclass(frozen=True)
class RejectedU64:
    """A value that only fits an unsigned 64-bit integer."""

    name: str
    value: int


@dataclass(frozen=True)
class RejectedBoolean:
    """A boolean where a number was expected."""

    name: str
    value: bool


Sample = Value | CountSum | CountSumRows | RejectedU64 | RejectedBoolean


@dataclass(frozen=True)
class Attributes:
    """Display attributes of an entity. Not part of its identity."""

    namespace_name: str | None = None
    table_name: str | None = None
    table_id: str | None = None


@dataclass(frozen=True)
class Entity:
    """One polled object (server, table, tablet, cdc stream, ...).

    Attributes:
        hostname_port: Source endpoint the entity was fetched from.
        entity_type: Entity type as reported by the server (e.g., tablet).
        entity_id: Entity identifier (uuid, "yb.master", stream id, ...).
        timestamp: Unix timestamp of the fetch that produced the entity.
        attributes: Namespace/table names used for display grouping.
        samples: The measurements of this entity.
    """

    hostname_port: str
    entity_type: str
    entity_id: str
    timestamp: float
    attributes: Attributes = field(default_factory=Attributes)
    samples: list[Sample] = field(default_factory=list)


@dataclass(frozen=True)
class NodeExporterSample:
    """A single node-exporter measurement.

    Attributes:
        name: Metric name (e.g., node_cpu_seconds_total).
        exporter_type: "counter" or "gauge".
        labels: Sorted label values joined with "_", prefixed with "_".
        category: "all", "detail" (only shown in detail mode) or
            "summary" (a synthetic aggregate, hidden in detail mode).
    """

    hostname_port: str
    timestamp: float
    name: str
    exporter_type: str
    labels: str
    category: str
    value: float


@dataclass(frozen=True)
class MasterEntry:
    """A master as listed by one server's masters endpoint."""

    hostname_port: str
    timestamp: float
    permanent_uuid: str
    instance_seqno: int
    start_time_us: int = 0
    role: str = "UNKNOWN_ROLE"
    placement_cloud: str = "-"
    placement_region: str = "-"
    placement_zone: str = "-"
    placement_uuid: str = "-"
    private_rpc_addresses: tuple[str, ...] = ()
    http_addresses: tuple[str, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class TabletServerEntry:
    """A tablet server as reported by one master's tablet-servers endpoint."""

    hostname_port: str
    timestamp: float
    tablet_server: str
    status: str
    uptime_seconds: int
    time_since_hb_sec: float = 0.0
    ram_used_bytes: int = 0
    num_sst_files: int = 0
    read_ops_per_sec: float = 0.0
    write_ops_per_sec: float = 0.0
    active_tablets: int = 0
    cloud: str = ""
    region: str = ""
    zone: str = ""


@dataclass(frozen=True)
class Var:
    """A runtime flag (gflag) with its value and origin type."""

    name: str
    value: str
    var_type: str


@dataclass(frozen=True)
class VarsEntry:
    """All flags of one server."""

    hostname_port: str
    timestamp: float
    flags: list[Var] = field(default_factory=list)


@dataclass(frozen=True)
class LeaderStatus:
    """Answer of one server to the is-leader probe ("OK" on the leader)."""

    hostname_port: str
    timestamp: float
    status: str


@dataclass(frozen=True)
class SnapshotInfo:
    """An entry of the snapshot index."""

    number: int
    timestamp: float
    comment: str = ""


@dataclass(frozen=True)
class RawPayload:
    """The body fetched from one endpoint of one host.

    An empty body means the fetch failed or returned nothing.
    """

    hostname_port: str
    endpoint: str
    timestamp: float
    body: str
