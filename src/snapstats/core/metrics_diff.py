"""Diff of cluster metrics (Value, CountSum and CountSumRows samples).

Each sample shape has its own TwoPhaseDiff. Samples are dispatched by their
class; rejected samples never take part in the arithmetic and are kept in a
side list instead.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import NamedTuple, cast

from snapstats.core.diff import DiffRow, TwoPhaseDiff
from snapstats.core.metadata import StatisticsTable, value_statistics
from snapstats.core.models import (
    CountSum,
    CountSumRows,
    Entity,
    RejectedBoolean,
    RejectedU64,
    Sample,
    Value,
)

logger = logging.getLogger(__name__)

# Entity types whose objects are summed per host unless detail mode is on.
SUMMABLE_ENTITY_TYPES = frozenset({"table", "tablet", "cdc", "cdcsdk"})
COLLAPSED_ID = "-"


class DiffKey(NamedTuple):
    """Identity of a sample across two snapshots."""

    hostname_port: str
    entity_type: str
    entity_id: str
    name: str


def effective_entity_id(entity_type: str, entity_id: str, detail_mode: bool) -> str:
    """Return the entity id used in the diff key.

    Args:
        entity_type: Type of the entity (server, table, tablet, ...).
        entity_id: Id of the entity.
        detail_mode: Keep per-object rows instead of per-host sums.

    Returns:
        "-" for summable entity types when detail mode is off, else entity_id.
    """
    if not detail_mode and entity_type in SUMMABLE_ENTITY_TYPES:
        return COLLAPSED_ID
    return entity_id


@dataclass(frozen=True)
class Observation:
    """A sample together with the entity it was reported for."""

    entity: Entity
    sample: Sample

    @property
    def timestamp(self) -> float:
        return self.entity.timestamp


@dataclass(frozen=True)
class RejectedSample:
    """A rejected sample, kept for debugging output."""

    snapshot: str
    hostname_port: str
    entity_type: str
    entity_id: str
    sample: RejectedU64 | RejectedBoolean


@dataclass
class ValueDiffRow(DiffRow):
    first_value: int = 0
    second_value: int = 0
    table_name: str = ""
    namespace: str = ""

    @property
    def delta(self) -> int:
        return self.second_value - self.first_value


@dataclass
class CountSumDiffRow(DiffRow):
    first_total_count: int = 0
    first_total_sum: int = 0
    second_total_count: int = 0
    second_total_sum: int = 0
    table_name: str = ""
    namespace: str = ""

    @property
    def count_delta(self) -> int:
        return self.second_total_count - self.first_total_count

    @property
    def sum_delta(self) -> int:
        return self.second_total_sum - self.first_total_sum


@dataclass
class CountSumRowsDiffRow(DiffRow):
    first_count: int = 0
    first_sum: int = 0
    first_rows: int = 0
    second_count: int = 0
    second_sum: int = 0
    second_rows: int = 0

    @property
    def count_delta(self) -> int:
        return self.second_count - self.first_count

    @property
    def sum_delta(self) -> int:
        return self.second_sum - self.first_sum

    @property
    def rows_delta(self) -> int:
        return self.second_rows - self.first_rows


def elapsed_ms(row: DiffRow) -> int:
    """Milliseconds between the two snapshot times of a row."""
    return round((row.second_snapshot_time - row.first_snapshot_time) * 1000)


def rate_per_second(delta: int | float, elapsed: int | float) -> float | None:
    """Return delta per second, or None when no time has elapsed.

    Args:
        delta: Difference between the second and first value.
        elapsed: Elapsed time in milliseconds.

    Returns:
        The rate, or None if elapsed is zero or negative.
    """
    if elapsed <= 0:
        return None
    return delta * 1000 / elapsed


def countsum_average(row: CountSumDiffRow) -> int | None:
    """Average of the new observations: sum delta divided by count delta.

    The quotient is truncated toward zero, so 7 over 2 is 3.
    """
    if row.count_delta == 0:
        return None
    quotient = abs(row.sum_delta) // abs(row.count_delta)
    if (row.sum_delta < 0) != (row.count_delta < 0):
        return -quotient
    return quotient


class _MetricPolicy:
    """Shared keying for the metric policies."""

    def __init__(self, detail_mode: bool) -> None:
        self._detail_mode = detail_mode

    def key(self, item: Observation) -> DiffKey:
        entity = item.entity
        return DiffKey(
            entity.hostname_port,
            entity.entity_type,
            effective_entity_id(
                entity.entity_type, entity.entity_id, self._detail_mode
            ),
            item.sample.name,
        )

    def timestamp(self, item: Observation) -> float:
        return item.timestamp

    def is_summable(self, key: DiffKey) -> bool:
        return not self._detail_mode and key.entity_type in SUMMABLE_ENTITY_TYPES


class ValuePolicy(_MetricPolicy):
    def __init__(self, detail_mode: bool, statistics: StatisticsTable) -> None:
        super().__init__(detail_mode)
        self._statistics = statistics

    def create(self, item: Observation) -> ValueDiffRow:
        attributes = item.entity.attributes
        return ValueDiffRow(
            table_name=attributes.table_name or "",
            namespace=attributes.namespace_name or "",
        )

    def merge_first(self, row: ValueDiffRow, item: Observation) -> None:
        sample = cast(Value, item.sample)
        row.first_value += sample.value

    def merge_second(self, row: ValueDiffRow, item: Observation) -> None:
        sample = cast(Value, item.sample)
        row.second_value += sample.value

    def is_unchanged(self, row: ValueDiffRow) -> bool:
        # A zero second value means the source went away between snapshots.
        return row.second_value <= 0

    def is_unchanged_for(self, key: DiffKey, row: ValueDiffRow) -> bool:
        """Gauges stay visible when they did not move; counters do not."""
        if self.is_unchanged(row):
            return True
        if self._statistics.lookup(key.name).is_gauge:
            return False
        return row.delta == 0


class CountSumPolicy(_MetricPolicy):
    def create(self, item: Observation) -> CountSumDiffRow:
        attributes = item.entity.attributes
        return CountSumDiffRow(
            table_name=attributes.table_name or "",
            namespace=attributes.namespace_name or "",
        )

    def merge_first(self, row: CountSumDiffRow, item: Observation) -> None:
        sample = cast(CountSum, item.sample)
        row.first_total_count += sample.total_count
        row.first_total_sum += sample.total_sum

    def merge_second(self, row: CountSumDiffRow, item: Observation) -> None:
        sample = cast(CountSum, item.sample)
        row.second_total_count += sample.total_count
        row.second_total_sum += sample.total_sum

    def is_unchanged(self, row: CountSumDiffRow) -> bool:
        return row.second_total_count <= 0 or row.count_delta == 0


class CountSumRowsPolicy(_MetricPolicy):
    """CountSumRows rows are always keyed by the full entity id."""

    def __init__(self) -> None:
        super().__init__(detail_mode=True)

    def create(self, item: Observation) -> CountSumRowsDiffRow:
        return CountSumRowsDiffRow()

    def merge_first(self, row: CountSumRowsDiffRow, item: Observation) -> None:
        sample = cast(CountSumRows, item.sample)
        row.first_count += sample.count
        row.first_sum += sample.sum
        row.first_rows += sample.rows

    def merge_second(self, row: CountSumRowsDiffRow, item: Observation) -> None:
        sample = cast(CountSumRows, item.sample)
        row.second_count += sample.count
        row.second_sum += sample.sum
        row.second_rows += sample.rows

    def is_summable(self, key: DiffKey) -> bool:
        return False

    def is_unchanged(self, row: CountSumRowsDiffRow) -> bool:
        return row.count_delta == 0


class MetricDiff:
    """Diff of two collections of metric entities.

    Example:
        >>> diff = MetricDiff(detail_mode=False)
        >>> diff.ingest_first(begin_entities)
        >>> diff.ingest_second(end_entities, first_snapshot_time=begin_time)
        >>> for key, row in diff.values.items():
        ...     print(key.name, row.delta)
    """

    def __init__(
        self,
        detail_mode: bool = False,
        statistics: StatisticsTable | None = None,
    ) -> None:
        self.detail_mode = detail_mode
        if statistics is None:
            statistics = value_statistics()
        self.statistics = statistics
        self._value_policy = ValuePolicy(detail_mode, statistics)
        self._values: TwoPhaseDiff[DiffKey, Observation, ValueDiffRow] = TwoPhaseDiff(
            self._value_policy, name="values"
        )
        self._countsums: TwoPhaseDiff[DiffKey, Observation, CountSumDiffRow] = (
            TwoPhaseDiff(CountSumPolicy(detail_mode), name="countsum")
        )
        self._countsumrows: TwoPhaseDiff[
            DiffKey, Observation, CountSumRowsDiffRow
        ] = TwoPhaseDiff(CountSumRowsPolicy(), name="countsumrows")
        self._rejected: list[RejectedSample] = []

    def ingest_first(self, entities: Iterable[Entity]) -> None:
        """Accumulate the entities of the first snapshot."""
        values, countsums, countsumrows = self._split(entities, "first")
        self._values.ingest_first(values)
        self._countsums.ingest_first(countsums)
        self._countsumrows.ingest_first(countsumrows)

    def ingest_second(
        self, entities: Iterable[Entity], first_snapshot_time: float
    ) -> None:
        """Merge the entities of the second snapshot.

        Args:
            entities: Entities of the second snapshot.
            first_snapshot_time: Begin time for keys new in this snapshot.
        """
        values, countsums, countsumrows = self._split(entities, "second")
        self._values.ingest_second(values, first_snapshot_time)
        self._countsums.ingest_second(countsums, first_snapshot_time)
        self._countsumrows.ingest_second(countsumrows, first_snapshot_time)

    @property
    def values(self) -> Mapping[DiffKey, ValueDiffRow]:
        return self._values.rows

    @property
    def countsums(self) -> Mapping[DiffKey, CountSumDiffRow]:
        return self._countsums.rows

    @property
    def countsumrows(self) -> Mapping[DiffKey, CountSumRowsDiffRow]:
        return self._countsumrows.rows

    @property
    def rejected(self) -> list[RejectedSample]:
        return list(self._rejected)

    def changed_values(self) -> Iterator[tuple[DiffKey, ValueDiffRow]]:
        """Value rows worth displaying, sorted by key."""
        rows = self.values
        for key in sorted(rows):
            if not self._value_policy.is_unchanged_for(key, rows[key]):
                yield key, rows[key]

    def changed_countsums(self) -> list[tuple[DiffKey, CountSumDiffRow]]:
        """CountSum rows with new observations, sorted by key."""
        return self._countsums.changed()

    def changed_countsumrows(self) -> list[tuple[DiffKey, CountSumRowsDiffRow]]:
        """CountSumRows rows with new calls, sorted by key."""
        return self._countsumrows.changed()

    def _split(
        self, entities: Iterable[Entity], snapshot: str
    ) -> tuple[list[Observation], list[Observation], list[Observation]]:
        values: list[Observation] = []
        countsums: list[Observation] = []
        countsumrows: list[Observation] = []
        for entity in entities:
            for sample in entity.samples:
                match sample:
                    case Value():
                        values.append(Observation(entity, sample))
                    case CountSum():
                        countsums.append(Observation(entity, sample))
                    case CountSumRows():
                        countsumrows.append(Observation(entity, sample))
                    case RejectedU64() | RejectedBoolean():
                        logger.debug(
                            "rejected sample %s on %s %s %s",
                            sample.name,
                            entity.hostname_port,
                            entity.entity_type,
                            entity.entity_id,
                        )
                        self._rejected.append(
                            RejectedSample(
                                snapshot=snapshot,
                                hostname_port=entity.hostname_port,
                                entity_type=entity.entity_type,
                                entity_id=entity.entity_id,
                                sample=sample,
                            )
                        )
        return values, countsums, countsumrows
