"""Generic two-phase diff engine.

Every diff in snapstats follows the same pattern: records of the first
snapshot are accumulated into keyed rows, records of the second snapshot are
merged into those rows (or create new ones), and the finished map is handed
to the presenter. A MergePolicy supplies the record specific parts: the key,
how a row is created and merged, and when a row counts as unchanged.
"""

import logging
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Generic, Protocol, TypeVar, runtime_checkable

from snapstats.core.errors import DiffStateError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")
R = TypeVar("R", bound="DiffRow")


class Phase(Enum):
    """State of a TwoPhaseDiff. Transitions only go forward."""

    FIRST = "first"
    SECOND = "second"
    BUILT = "built"


@dataclass
class DiffRow:
    """Base for all diff rows.

    Attributes:
        first_snapshot_time: Timestamp of the first snapshot for this key. For
            keys that only exist in the second snapshot, the begin time of the
            whole diff.
        second_snapshot_time: Timestamp of the second snapshot for this key,
            0.0 if the key was not seen there.
    """

    first_snapshot_time: float = 0.0
    second_snapshot_time: float = 0.0


@runtime_checkable
class MergePolicy(Protocol[K, T, R]):
    """Record specific behaviour plugged into TwoPhaseDiff."""

    def key(self, item: T) -> K | None:
        """Return the diff key of a record, or None to skip the record."""
        ...

    def timestamp(self, item: T) -> float:
        """Return the time the record was collected."""
        ...

    def create(self, item: T) -> R:
        """Return a new, empty row carrying the record's display metadata."""
        ...

    def merge_first(self, row: R, item: T) -> None:
        """Add a first snapshot record to its row."""
        ...

    def merge_second(self, row: R, item: T) -> None:
        """Add a second snapshot record to its row."""
        ...

    def is_summable(self, key: K) -> bool:
        """Whether several records of one snapshot may share this key."""
        ...

    def is_unchanged(self, row: R) -> bool:
        """Whether the row should be left out of the changed rows."""
        ...


class TwoPhaseDiff(Generic[K, T, R]):
    """Accumulates two snapshots of records into a read-only keyed map.

    Usage: ingest_first(), then ingest_second(), then read rows or
    changed(). The engine is not re-enterable; build a new one per diff.
    Within one snapshot, repeated keys are summed when the policy says the
    key is summable; otherwise the duplicate is logged and the first value
    is kept.
    """

    def __init__(self, policy: MergePolicy[K, T, R], name: str = "diff") -> None:
        self._policy = policy
        self._name = name
        self._rows: dict[K, R] = {}
        self._phase = Phase.FIRST

    @property
    def phase(self) -> Phase:
        """Current state of the engine."""
        return self._phase

    def ingest_first(self, items: Iterable[T]) -> None:
        """Accumulate the records of the first snapshot.

        Args:
            items: Records of the first (begin) snapshot.

        Raises:
            DiffStateError: If the first snapshot was already ingested.
        """
        if self._phase is not Phase.FIRST:
            raise DiffStateError(
                f"{self._name}: first snapshot ingested twice ({self._phase.value})"
            )
        policy = self._policy
        for item in items:
            key = policy.key(item)
            if key is None:
                continue
            row = self._rows.get(key)
            if row is None:
                row = policy.create(item)
                row.first_snapshot_time = policy.timestamp(item)
                self._rows[key] = row
            elif not policy.is_summable(key):
                self._duplicate(key, "first")
                continue
            policy.merge_first(row, item)
        self._phase = Phase.SECOND

    def ingest_second(self, items: Iterable[T], first_snapshot_time: float) -> None:
        """Merge the records of the second snapshot.

        Args:
            items: Records of the second (end) snapshot.
            first_snapshot_time: Begin time assigned to keys that did not
                exist in the first snapshot.

        Raises:
            DiffStateError: If called before ingest_first or after the build.
        """
        if self._phase is not Phase.SECOND:
            raise DiffStateError(
                f"{self._name}: second snapshot ingested in phase {self._phase.value}"
            )
        policy = self._policy
        seen: set[K] = set()
        for item in items:
            key = policy.key(item)
            if key is None:
                continue
            row = self._rows.get(key)
            if row is None:
                row = policy.create(item)
                row.first_snapshot_time = first_snapshot_time
                self._rows[key] = row
            elif key in seen and not policy.is_summable(key):
                self._duplicate(key, "second")
                continue
            if key not in seen:
                row.second_snapshot_time = policy.timestamp(item)
                seen.add(key)
            policy.merge_second(row, item)
        self._phase = Phase.BUILT

    @property
    def rows(self) -> Mapping[K, R]:
        """Read-only view of all rows.

        Raises:
            DiffStateError: If the diff is not built yet.
        """
        if self._phase is not Phase.BUILT:
            raise DiffStateError(f"{self._name}: rows read before both snapshots")
        return MappingProxyType(self._rows)

    def changed(self) -> list[tuple[K, R]]:
        """Rows not considered unchanged by the policy, sorted by key."""
        rows = self.rows
        return [
            (key, rows[key])
            for key in sorted(rows)  # type: ignore[type-var]
            if not self._policy.is_unchanged(rows[key])
        ]

    def _duplicate(self, key: K, snapshot: str) -> None:
        logger.warning(
            "%s: duplicate key in %s snapshot, keeping first value: %s",
            self._name,
            snapshot,
            key,
        )
