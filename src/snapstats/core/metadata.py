"""Read-only lookup of statistic metadata (unit, display suffix, divisor, kind).

Two tables exist: one for Value statistics and one for CountSum statistics.
Both are built once on first use and never mutated afterwards.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import cache
from types import MappingProxyType

from snapstats.core.statistics_data import COUNTSUM_STATISTICS, VALUE_STATISTICS

logger = logging.getLogger(__name__)

UNKNOWN = "?"

_UNIT_SUFFIXES: Mapping[str, str] = MappingProxyType(
    {
        "microseconds": "us",
        "milliseconds": "ms",
        "seconds": "s",
        "operations": "ops",
        "bytes": "bytes",
        "files": "files",
        "tasks": "tasks",
        "requests": "reqs",
        "rows": "rows",
        "keys": "keys",
        "blocks": "blocks",
        "entries": "entries",
        "transactions": "txns",
        "connections": "conns",
        "threads": "threads",
        "tablets": "tablets",
        UNKNOWN: UNKNOWN,
    }
)

_UNIT_DIVISORS: Mapping[str, int] = MappingProxyType(
    {
        "microseconds": 1_000_000,
        "milliseconds": 1_000,
    }
)


@dataclass(frozen=True)
class StatisticDetails:
    """Metadata of a named statistic.

    Attributes:
        unit: Full unit name (e.g., microseconds).
        unit_suffix: Abbreviated unit for display (e.g., us).
        divisor: Divisor that converts the unit to its base (seconds, ...).
        kind: "counter", "gauge" or "unknown".
    """

    unit: str
    unit_suffix: str
    divisor: int
    kind: str

    @property
    def is_gauge(self) -> bool:
        """True only for statistics explicitly classified as gauges."""
        return self.kind == "gauge"


SENTINEL = StatisticDetails(
    unit=UNKNOWN, unit_suffix=UNKNOWN, divisor=1, kind="unknown"
)


def unit_suffix(unit: str) -> str:
    """Return the display suffix for a unit, "?" when unknown."""
    suffix = _UNIT_SUFFIXES.get(unit)
    if suffix is None:
        logger.info("no suffix for unit %s", unit)
        return UNKNOWN
    return suffix


def unit_divisor(unit: str) -> int:
    """Return the divisor for a unit; units without one divide by 1."""
    return _UNIT_DIVISORS.get(unit, 1)


class StatisticsTable:
    """Immutable name -> StatisticDetails mapping with a sentinel on miss."""

    def __init__(self, rows: Iterable[tuple[str, str, str]]) -> None:
        """Build the table.

        Args:
            rows: (name, unit, kind) triples.
        """
        self._details: Mapping[str, StatisticDetails] = MappingProxyType(
            {
                name: StatisticDetails(
                    unit=unit,
                    unit_suffix=unit_suffix(unit),
                    divisor=unit_divisor(unit),
                    kind=kind,
                )
                for name, unit, kind in rows
            }
        )
        self._reported: set[str] = set()

    def __len__(self) -> int:
        return len(self._details)

    def __contains__(self, name: object) -> bool:
        return name in self._details

    def lookup(self, name: str) -> StatisticDetails:
        """Return the details of a statistic.

        Unknown names return the sentinel (suffix "?", divisor 1, kind
        "unknown") so the statistic is still displayed. The miss is logged
        once per name.

        Args:
            name: Exact statistic name.

        Returns:
            The StatisticDetails for the name, or SENTINEL.
        """
        details = self._details.get(name)
        if details is not None:
            return details
        if name not in self._reported:
            self._reported.add(name)
            logger.info("statistic not found: %s", name)
        return SENTINEL


@cache
def value_statistics() -> StatisticsTable:
    """The table for Value statistics (counters and gauges)."""
    return StatisticsTable(VALUE_STATISTICS)


@cache
def countsum_statistics() -> StatisticsTable:
    """The table for CountSum statistics (latencies and sizes)."""
    return StatisticsTable(COUNTSUM_STATISTICS)
