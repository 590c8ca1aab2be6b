"""Text rendering of built diffs.

Each render function takes a built diff and returns aligned lines. Rows are
selected by the diff (disappeared sources and unchanged rows are already
left out); the presenter applies the user's filters and display toggles.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from snapstats.core.metadata import StatisticsTable, countsum_statistics
from snapstats.core.metrics_diff import (
    DiffKey,
    MetricDiff,
    countsum_average,
    elapsed_ms,
    rate_per_second,
)
from snapstats.core.variants import (
    MasterChange,
    MasterDiffRow,
    MastersDiff,
    NodeExporterDiff,
    TabletServerChange,
    TabletServersDiff,
    VarsDiff,
    classify_master,
    classify_tablet_server,
)

MATCH_ALL = re.compile("")

_INDENT = " " * 42


@dataclass(frozen=True)
class Filters:
    """Regular expressions a row must match (search semantics) to be shown."""

    hostname: re.Pattern[str] = field(default=MATCH_ALL)
    stat_name: re.Pattern[str] = field(default=MATCH_ALL)
    table_name: re.Pattern[str] = field(default=MATCH_ALL)


@dataclass(frozen=True)
class RenderOptions:
    """Display toggles.

    Attributes:
        details: Show detail rows (per object, per CPU) instead of summaries.
        gauges: Show gauge values; off by default since gauges are noisy.
    """

    details: bool = False
    gauges: bool = False


def format_rate(rate: float | None) -> str:
    """Right-aligned rate, "-" when the rate is undefined."""
    if rate is None:
        return f"{'-':>15}"
    return f"{rate:>15.3f}"


def _id_tail(entity_id: str) -> str:
    return entity_id[-15:]


def _metric_prefix(key: DiffKey, detailed: bool, namespace: str, table: str) -> str:
    if detailed:
        return (
            f"{key.hostname_port:20} {key.entity_type:8} {_id_tail(key.entity_id):15} "
            f"{namespace:15} {table:30} {key.name:70}"
        )
    return f"{key.hostname_port:20} {key.entity_type:8} {key.name:70}"


def _host_and_name(filters: Filters, hostname_port: str, name: str) -> bool:
    return bool(
        filters.hostname.search(hostname_port) and filters.stat_name.search(name)
    )


def _matches(filters: Filters, key: DiffKey, table_name: str) -> bool:
    return bool(
        filters.hostname.search(key.hostname_port)
        and filters.stat_name.search(key.name)
        and filters.table_name.search(table_name)
    )


def render_metrics(
    diff: MetricDiff,
    filters: Filters | None = None,
    options: RenderOptions | None = None,
    countsum_table: StatisticsTable | None = None,
) -> list[str]:
    """Render Value, CountSum and CountSumRows rows of a metrics diff.

    Counters show the delta and the rate per second; gauges (only with the
    gauges option) show the current value and the signed delta. Statistics
    with an unknown kind are shown as counters.
    """
    filters = filters or Filters()
    options = options or RenderOptions()
    if countsum_table is None:
        countsum_table = countsum_statistics()
    detailed = diff.detail_mode
    lines = []

    for key, row in diff.changed_values():
        if not _matches(filters, key, row.table_name):
            continue
        details = diff.statistics.lookup(key.name)
        prefix = _metric_prefix(key, detailed, row.namespace, row.table_name)
        if details.is_gauge:
            if options.gauges:
                lines.append(
                    f"{prefix} {row.second_value:15} {details.unit_suffix:6} "
                    f"{row.delta:+15}"
                )
            continue
        rate = rate_per_second(row.delta, elapsed_ms(row))
        lines.append(
            f"{prefix} {row.delta:15} {details.unit_suffix:6} {format_rate(rate)} /s"
        )

    for key, countsum_row in diff.changed_countsums():
        if not _matches(filters, key, countsum_row.table_name):
            continue
        details = countsum_table.lookup(key.name)
        prefix = _metric_prefix(
            key, detailed, countsum_row.namespace, countsum_row.table_name
        )
        rate = rate_per_second(countsum_row.count_delta, elapsed_ms(countsum_row))
        average = countsum_average(countsum_row) or 0
        lines.append(
            f"{prefix} {countsum_row.count_delta:15}        {format_rate(rate)} /s "
            f"avg: {average:9} tot: {countsum_row.sum_delta:>15} "
            f"{details.unit_suffix:10}"
        )

    for key, rows_row in diff.changed_countsumrows():
        if not _host_and_name(filters, key.hostname_port, key.name):
            continue
        calls = rows_row.count_delta
        lines.append(
            f"{key.hostname_port:20} {key.entity_type:8} {_id_tail(key.entity_id):15} "
            f"{key.name:70} {calls:>10} "
            f"avg: {rows_row.sum_delta / calls / 1000:>12.3f} "
            f"tot: {rows_row.sum_delta / 1000:>15.3f} ms "
            f"avg: {rows_row.rows_delta / calls:>10.0f} "
            f"tot: {rows_row.rows_delta:>12} rows"
        )
    return lines


def render_node_exporter(
    diff: NodeExporterDiff,
    filters: Filters | None = None,
    options: RenderOptions | None = None,
) -> list[str]:
    """Render node-exporter rows.

    Detail mode shows the per-CPU and exporter-internal samples and hides the
    summaries; otherwise it is the other way round.
    """
    filters = filters or Filters()
    options = options or RenderOptions()
    lines = []
    for key, row in diff.changed():
        if options.details and row.category == "summary":
            continue
        if not options.details and row.category == "detail":
            continue
        name = f"{key.name}{key.labels}"
        if not _host_and_name(filters, key.hostname_port, name):
            continue
        if row.exporter_type == "gauge":
            if options.gauges:
                lines.append(
                    f"{key.hostname_port:20} {row.exporter_type:8} {name:73} "
                    f"{row.second_value:19.6f} {row.delta:+15}"
                )
            continue
        rate = rate_per_second(row.delta, elapsed_ms(row))
        lines.append(
            f"{key.hostname_port:20} {row.exporter_type:8} {name:73} "
            f"{row.delta:19.6f} {format_rate(rate)} /s"
        )
    return lines


def _changed(old: object, new: object) -> str:
    if old != new:
        return f"{old}->{new}"
    return f"{new}"


def _master_lines(uuid: str, row: MasterDiffRow, change: MasterChange) -> list[str]:
    if change is MasterChange.CHANGED:
        first, second = row.first, row.second
        return [
            f"{change.value} Master {uuid} {_changed(first.role, second.role)} "
            f"Cloud: {_changed(first.placement_cloud, second.placement_cloud)}, "
            f"Region: {_changed(first.placement_region, second.placement_region)}, "
            f"Zone: {_changed(first.placement_zone, second.placement_zone)}",
            f"{_INDENT}Seqno: {_changed(first.instance_seqno, second.instance_seqno)}, "
            f"Start time: {_changed(first.start_time_us, second.start_time_us)}",
            f"{_INDENT}Http ( "
            f"{_changed(first.http_addresses, second.http_addresses)} )",
            f"{_INDENT}Rpc ( {_changed(first.rpc_addresses, second.rpc_addresses)} )",
        ]
    fields = row.first if change is MasterChange.REMOVED else row.second
    return [
        f"{change.value} Master {uuid} {fields.role:8} "
        f"Cloud: {fields.placement_cloud}, "
        f"Region: {fields.placement_region}, Zone: {fields.placement_zone}",
        f"{_INDENT}Seqno: {fields.instance_seqno} Start time: {fields.start_time_us}",
        f"{_INDENT}Http ( {fields.http_addresses} )",
        f"{_INDENT}Rpc ( {fields.rpc_addresses} )",
    ]


def render_masters(diff: MastersDiff) -> list[str]:
    """Render added, removed and changed masters."""
    if not diff.master_found:
        return [
            "Master leader was not found in hosts specified, skipping masters diff."
        ]
    lines = []
    for uuid, row in diff.changed():
        lines.extend(_master_lines(uuid, row, classify_master(row)))
    return lines


def render_tablet_servers(diff: TabletServersDiff) -> list[str]:
    """Render tablet servers whose status changed, or that restarted."""
    if not diff.master_found:
        return [
            "Master leader was not found in hosts specified, "
            "skipping tablet servers diff."
        ]
    lines = []
    for tablet_server, row in diff.changed():
        change = classify_tablet_server(row)
        if change is TabletServerChange.REMOVED:
            status, uptime = row.first_status, f"{row.first_uptime_seconds}"
        elif change is TabletServerChange.ADDED:
            status, uptime = row.second_status, f"{row.second_uptime_seconds}"
        else:
            status = _changed(row.first_status, row.second_status)
            if row.second_uptime_seconds < row.first_uptime_seconds:
                uptime = f"{row.first_uptime_seconds}->{row.second_uptime_seconds}"
            else:
                uptime = f"{row.second_uptime_seconds}"
        line = (
            f"{change.value} Tserver:  {tablet_server}, "
            f"status: {status}, uptime: {uptime} s"
        )
        if change is TabletServerChange.REBOOTED:
            line += " (reboot)"
        lines.append(line)
    return lines


def render_vars(diff: VarsDiff, filters: Filters | None = None) -> list[str]:
    """Render flags whose value or type changed on a server."""
    filters = filters or Filters()
    lines = []
    for key, row in diff.changed():
        if not _host_and_name(filters, key.hostname_port, key.name):
            continue
        lines.append(
            f"* {key.hostname_port:20} Vars: {key.name:50} "
            f"{_changed(row.first_value, row.second_value)} "
            f"{_changed(row.first_type, row.second_type)}"
        )
    return lines


def render_report(
    *,
    metrics: MetricDiff | None = None,
    node_exporter: NodeExporterDiff | None = None,
    masters: MastersDiff | None = None,
    tablet_servers: TabletServersDiff | None = None,
    vars_diff: VarsDiff | None = None,
    notices: Iterable[str] = (),
    filters: Filters | None = None,
    options: RenderOptions | None = None,
) -> list[str]:
    """Render every available diff, notices first."""
    lines = list(notices)
    if masters is not None:
        lines.extend(render_masters(masters))
    if tablet_servers is not None:
        lines.extend(render_tablet_servers(tablet_servers))
    if vars_diff is not None:
        lines.extend(render_vars(vars_diff, filters))
    if metrics is not None:
        lines.extend(render_metrics(metrics, filters, options))
    if node_exporter is not None:
        lines.extend(render_node_exporter(node_exporter, filters, options))
    return lines
