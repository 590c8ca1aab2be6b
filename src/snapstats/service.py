"""Snapshot and diff workflows.

These functions tie the collector, the snapshot store and the diff engines
together; the CLI is a thin layer over them.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from snapstats.core.encoding.cluster_json import find_leader
from snapstats.core.encoding.records import (
    IS_LEADER,
    LABELS,
    MASTERS,
    METRICS,
    NODE_EXPORTER,
    TABLET_SERVERS,
    VARS,
)
from snapstats.core.errors import SnapshotNotFoundError
from snapstats.core.metrics_diff import MetricDiff
from snapstats.core.models import SnapshotInfo
from snapstats.core.ports import CollectorPort, SnapshotStoragePort
from snapstats.core.presenter import Filters, RenderOptions, render_report
from snapstats.core.variants import (
    MastersDiff,
    NodeExporterDiff,
    TabletServersDiff,
    VarsDiff,
)

logger = logging.getLogger(__name__)

# Records per label; None when a label could not be loaded.
Collection = Mapping[str, list[Any] | None]


@dataclass
class DiffReport:
    """The diffs built for one begin/end pair.

    A diff is None when its data was missing from either snapshot; notices
    say which.
    """

    metrics: MetricDiff | None = None
    node_exporter: NodeExporterDiff | None = None
    masters: MastersDiff | None = None
    tablet_servers: TabletServersDiff | None = None
    vars_diff: VarsDiff | None = None
    notices: list[str] = field(default_factory=list)

    def render(
        self,
        filters: Filters | None = None,
        options: RenderOptions | None = None,
    ) -> list[str]:
        return render_report(
            metrics=self.metrics,
            node_exporter=self.node_exporter,
            masters=self.masters,
            tablet_servers=self.tablet_servers,
            vars_diff=self.vars_diff,
            notices=self.notices,
            filters=filters,
            options=options,
        )


async def collect_all(collector: CollectorPort) -> dict[str, list[Any]]:
    """Fetch every kind of record concurrently, keyed by snapshot label."""
    results = await asyncio.gather(
        collector.metrics(),
        collector.node_exporter(),
        collector.masters(),
        collector.tablet_servers(),
        collector.vars(),
        collector.leader_statuses(),
    )
    return dict(
        zip(
            (METRICS, NODE_EXPORTER, MASTERS, TABLET_SERVERS, VARS, IS_LEADER),
            results,
            strict=True,
        )
    )


async def take_snapshot(
    collector: CollectorPort, storage: SnapshotStoragePort, comment: str = ""
) -> SnapshotInfo:
    """Collect everything and store it as a new snapshot.

    Raises:
        SnapshotStorageError: If the snapshot cannot be written.
    """
    info = await storage.create(comment)
    collection = await collect_all(collector)
    for label in LABELS:
        await storage.save(info.number, label, collection[label])
    logger.info(
        "snapshot %d stored (%s)",
        info.number,
        ", ".join(f"{label}={len(collection[label])}" for label in LABELS),
    )
    return info


def build_report(
    first: Collection,
    second: Collection,
    first_snapshot_time: float,
    detail_mode: bool = False,
) -> DiffReport:
    """Diff two collections label by label.

    A label missing on either side is skipped; the other labels are still
    diffed.
    """
    report = DiffReport()

    def both(label: str) -> tuple[list[Any], list[Any]] | None:
        begin, end = first.get(label), second.get(label)
        if begin is None or end is None:
            return None
        return begin, end

    if pair := both(METRICS):
        report.metrics = MetricDiff(detail_mode=detail_mode)
        report.metrics.ingest_first(pair[0])
        report.metrics.ingest_second(pair[1], first_snapshot_time)
        if report.metrics.rejected:
            logger.info("%d rejected samples", len(report.metrics.rejected))

    if pair := both(NODE_EXPORTER):
        report.node_exporter = NodeExporterDiff()
        report.node_exporter.ingest_first(pair[0])
        report.node_exporter.ingest_second(pair[1], first_snapshot_time)

    if pair := both(VARS):
        report.vars_diff = VarsDiff()
        report.vars_diff.ingest_first(pair[0])
        report.vars_diff.ingest_second(pair[1], first_snapshot_time)

    first_leader = find_leader(first.get(IS_LEADER) or [])
    second_leader = find_leader(second.get(IS_LEADER) or [])

    if pair := both(MASTERS):
        report.masters = MastersDiff()
        report.masters.ingest_first(pair[0], first_leader)
        report.masters.ingest_second(pair[1], second_leader, first_snapshot_time)

    if pair := both(TABLET_SERVERS):
        report.tablet_servers = TabletServersDiff()
        report.tablet_servers.ingest_first(pair[0], first_leader)
        report.tablet_servers.ingest_second(
            pair[1], second_leader, first_snapshot_time
        )
    return report


async def _load_labels(
    storage: SnapshotStoragePort, number: int, notices: list[str]
) -> dict[str, list[Any] | None]:
    collection: dict[str, list[Any] | None] = {}
    for label in LABELS:
        try:
            collection[label] = await storage.load(number, label)
        except SnapshotNotFoundError as exc:
            logger.info("%s", exc)
            notices.append(f"{exc}, skipping {label} diff.")
            collection[label] = None
    return collection


async def diff_snapshots(
    storage: SnapshotStoragePort,
    begin: int,
    end: int,
    detail_mode: bool = False,
) -> DiffReport:
    """Diff two stored snapshots.

    Raises:
        SnapshotNotFoundError: If either snapshot number does not exist.
    """
    begin_info = await storage.get(begin)
    await storage.get(end)
    notices: list[str] = []
    first = await _load_labels(storage, begin, notices)
    second = await _load_labels(storage, end, notices)
    report = build_report(first, second, begin_info.timestamp, detail_mode)
    report.notices[:0] = notices
    return report


async def adhoc_diff(
    collector: CollectorPort,
    interval: float,
    detail_mode: bool = False,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> DiffReport:
    """Collect, wait for interval seconds, collect again and diff in memory."""
    first_snapshot_time = time.time()
    first = await collect_all(collector)
    logger.info("first collection done, waiting %s seconds", interval)
    await sleep(interval)
    second = await collect_all(collector)
    return build_report(first, second, first_snapshot_time, detail_mode)
