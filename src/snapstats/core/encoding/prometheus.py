"""Parser for node-exporter metrics in the Prometheus text format.

Parsing itself is done by prometheus_client. This module turns the samples
into NodeExporterSample records and adds the synthetic summary samples shown
when detail mode is off.
"""

import logging
from collections.abc import Iterable
from dataclasses import asdict, replace
from typing import Any

from prometheus_client.parser import text_string_to_metric_families

from snapstats.core.models import NodeExporterSample

logger = logging.getLogger(__name__)

CATEGORY_ALL = "all"
CATEGORY_DETAIL = "detail"
CATEGORY_SUMMARY = "summary"

# Metrics about the exporter process itself rather than the node.
_DETAIL_PREFIXES = ("process_", "promhttp_", "go_", "node_scrape_collector_")

# Per-CPU counters that get one summed sample per node; the per-CPU samples
# become detail.
_SUMMED_COUNTERS = (
    "node_softnet_processed_total",
    "node_softnet_dropped_total",
    "node_softnet_times_squeezed_total",
    "node_schedstat_waiting_seconds_total",
    "node_schedstat_timeslices_total",
    "node_schedstat_running_seconds_total",
)

CPU_SECONDS = "node_cpu_seconds_total"
CPU_MODES = ("idle", "irq", "softirq", "system", "user", "iowait", "nice", "steal")


def label_string(labels: dict[str, str]) -> str:
    """Sorted label values joined with "_", prefixed with "_" ("" if none)."""
    if not labels:
        return ""
    return "_" + "_".join(sorted(labels.values()))


def _exporter_type(family_type: str, sample_name: str) -> str | None:
    if family_type in ("counter", "gauge"):
        return family_type
    if family_type in ("untyped", "unknown"):
        if sample_name.endswith(("_sum", "_count")):
            return None
        return "counter"
    # histogram and summary samples are not diffed.
    return None


def parse_node_exporter(
    body: str, hostname_port: str, timestamp: float
) -> list[NodeExporterSample]:
    """Parse the metrics page of a node exporter.

    Args:
        body: Prometheus text exposition.
        hostname_port: Exporter the body was fetched from.
        timestamp: Fetch time.

    Returns:
        Counter and gauge samples, classified into categories, followed by
        the summary samples. Unparseable text yields [].
    """
    if not body:
        return []
    parsed: list[tuple[NodeExporterSample, dict[str, str]]] = []
    try:
        for family in text_string_to_metric_families(body):
            for sample in family.samples:
                exporter_type = _exporter_type(family.type, sample.name)
                if exporter_type is None:
                    continue
                labels = dict(sample.labels)
                parsed.append(
                    (
                        NodeExporterSample(
                            hostname_port=hostname_port,
                            timestamp=timestamp,
                            name=sample.name,
                            exporter_type=exporter_type,
                            labels=label_string(labels),
                            category=CATEGORY_ALL,
                            value=float(sample.value),
                        ),
                        labels,
                    )
                )
    except ValueError as exc:
        logger.debug(
            "unable to parse node exporter metrics from %s: %s",
            hostname_port,
            exc,
            extra={"hostname_port": hostname_port, "endpoint": "metrics"},
        )
        return []
    return _with_summaries(parsed, hostname_port, timestamp)


def _with_summaries(
    parsed: list[tuple[NodeExporterSample, dict[str, str]]],
    hostname_port: str,
    timestamp: float,
) -> list[NodeExporterSample]:
    samples: list[NodeExporterSample] = []
    summaries: list[NodeExporterSample] = []

    def summary(name: str, labels: str, values: list[float]) -> None:
        summaries.append(
            NodeExporterSample(
                hostname_port=hostname_port,
                timestamp=timestamp,
                name=name,
                exporter_type="counter",
                labels=labels,
                category=CATEGORY_SUMMARY,
                value=sum(values),
            )
        )

    for name in _SUMMED_COUNTERS:
        values = [sample.value for sample, _ in parsed if sample.name == name]
        if values:
            summary(name, "", values)

    cpu = [(sample, labels) for sample, labels in parsed if sample.name == CPU_SECONDS]
    if cpu:
        for mode in CPU_MODES:
            summary(
                CPU_SECONDS,
                f"_{mode}",
                [sample.value for sample, labels in cpu if labels.get("mode") == mode],
            )

    for sample, _ in parsed:
        if (
            sample.name.startswith(_DETAIL_PREFIXES)
            or "dm-" in sample.labels
            or sample.name == CPU_SECONDS
            or sample.name in _SUMMED_COUNTERS
        ):
            sample = replace(sample, category=CATEGORY_DETAIL)
        samples.append(sample)
    return samples + summaries


def encode_samples(samples: Iterable[NodeExporterSample]) -> list[dict[str, Any]]:
    return [asdict(sample) for sample in samples]


def decode_samples(objects: Iterable[dict[str, Any]]) -> list[NodeExporterSample]:
    return [NodeExporterSample(**obj) for obj in objects]
