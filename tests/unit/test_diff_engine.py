"""Tests for the generic two-phase diff engine."""

import logging
from dataclasses import dataclass

import pytest
from hypothesis import given
from hypothesis import strategies as st

from snapstats.core.diff import DiffRow, MergePolicy, Phase, TwoPhaseDiff
from snapstats.core.errors import DiffStateError

pytestmark = pytest.mark.tier(1)


@dataclass(frozen=True)
class Reading:
    name: str
    value: int
    timestamp: float = 1000.0


@dataclass
class ReadingRow(DiffRow):
    first: int = 0
    second: int = 0


class ReadingPolicy:
    """Names starting with "sum_" are summable."""

    def key(self, item: Reading) -> str | None:
        return item.name or None

    def timestamp(self, item: Reading) -> float:
        return item.timestamp

    def create(self, item: Reading) -> ReadingRow:
        return ReadingRow()

    def merge_first(self, row: ReadingRow, item: Reading) -> None:
        row.first += item.value

    def merge_second(self, row: ReadingRow, item: Reading) -> None:
        row.second += item.value

    def is_summable(self, key: str) -> bool:
        return key.startswith("sum_")

    def is_unchanged(self, row: ReadingRow) -> bool:
        return row.first == row.second


def built(first: list[Reading], second: list[Reading]) -> TwoPhaseDiff:
    diff: TwoPhaseDiff[str, Reading, ReadingRow] = TwoPhaseDiff(ReadingPolicy())
    diff.ingest_first(first)
    diff.ingest_second(second, first_snapshot_time=900.0)
    return diff


class TestPhases:
    """Tests for the FIRST -> SECOND -> BUILT state machine."""

    @pytest.mark.core
    def test_policy_satisfies_protocol(self) -> None:
        """ReadingPolicy must satisfy the MergePolicy protocol."""
        assert isinstance(ReadingPolicy(), MergePolicy)

    @pytest.mark.core
    def test_phase_progression(self) -> None:
        """Each ingestion moves the engine one phase forward."""
        diff: TwoPhaseDiff[str, Reading, ReadingRow] = TwoPhaseDiff(ReadingPolicy())
        assert diff.phase is Phase.FIRST

        diff.ingest_first([])
        assert diff.phase is Phase.SECOND

        diff.ingest_second([], first_snapshot_time=0.0)
        assert diff.phase is Phase.BUILT

    @pytest.mark.core
    def test_second_before_first_raises(self) -> None:
        """ingest_second before ingest_first is rejected."""
        diff: TwoPhaseDiff[str, Reading, ReadingRow] = TwoPhaseDiff(ReadingPolicy())

        with pytest.raises(DiffStateError):
            diff.ingest_second([], first_snapshot_time=0.0)

    @pytest.mark.core
    def test_not_re_enterable(self) -> None:
        """A built engine accepts no more input."""
        diff = built([], [])

        with pytest.raises(DiffStateError):
            diff.ingest_first([])
        with pytest.raises(DiffStateError):
            diff.ingest_second([], first_snapshot_time=0.0)

    @pytest.mark.core
    def test_rows_before_build_raises(self) -> None:
        """Rows are only readable once both snapshots are in."""
        diff: TwoPhaseDiff[str, Reading, ReadingRow] = TwoPhaseDiff(ReadingPolicy())
        diff.ingest_first([Reading("a", 1)])

        with pytest.raises(DiffStateError):
            _ = diff.rows

    @pytest.mark.core
    def test_rows_are_read_only(self) -> None:
        """The built map cannot be modified."""
        diff = built([Reading("a", 1)], [Reading("a", 2)])

        with pytest.raises(TypeError):
            diff.rows["b"] = ReadingRow()  # type: ignore[index]


class TestAccumulation:
    """Tests for row creation, merging and timestamps."""

    @pytest.mark.core
    def test_matched_key_merges_both_sides(self) -> None:
        """A key in both snapshots carries both values and both times."""
        diff = built(
            [Reading("a", 1, timestamp=1000.0)], [Reading("a", 5, timestamp=1010.0)]
        )

        row = diff.rows["a"]
        assert (row.first, row.second) == (1, 5)
        assert row.first_snapshot_time == 1000.0
        assert row.second_snapshot_time == 1010.0

    @pytest.mark.core
    def test_new_key_uses_fallback_time(self) -> None:
        """A key only in the second snapshot starts at the fallback time."""
        diff = built([], [Reading("new", 3, timestamp=1010.0)])

        row = diff.rows["new"]
        assert row.first == 0
        assert row.first_snapshot_time == 900.0
        assert row.second_snapshot_time == 1010.0

    @pytest.mark.core
    def test_key_only_in_first_keeps_defaults(self) -> None:
        """A key missing from the second snapshot keeps second == 0."""
        diff = built([Reading("gone", 3)], [])

        row = diff.rows["gone"]
        assert row.second == 0
        assert row.second_snapshot_time == 0.0

    @pytest.mark.core
    def test_summable_keys_are_summed(self) -> None:
        """Repeated summable keys accumulate in both snapshots."""
        diff = built(
            [Reading("sum_x", 1), Reading("sum_x", 2)],
            [Reading("sum_x", 4), Reading("sum_x", 8)],
        )

        row = diff.rows["sum_x"]
        assert (row.first, row.second) == (3, 12)

    @pytest.mark.core
    def test_duplicate_keeps_first_value_and_warns(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A repeated non-summable key is logged and the first value wins."""
        with caplog.at_level(logging.WARNING, logger="snapstats.core.diff"):
            diff = built(
                [Reading("a", 1), Reading("a", 100)],
                [Reading("a", 2), Reading("a", 200)],
            )

        row = diff.rows["a"]
        assert (row.first, row.second) == (1, 2)
        duplicates = [r for r in caplog.records if "duplicate key" in r.getMessage()]
        assert len(duplicates) == 2

    @pytest.mark.core
    def test_none_key_is_skipped(self) -> None:
        """Items whose key is None do not create rows."""
        diff = built([Reading("", 1)], [Reading("", 2)])

        assert dict(diff.rows) == {}

    @pytest.mark.core
    @pytest.mark.tra("Core.Diff.KeyingDeterminism")
    def test_order_of_items_does_not_matter(self) -> None:
        """Rows are the same whatever the order of arrival."""
        items = [Reading("a", 1), Reading("b", 2), Reading("sum_c", 3)]

        forward = built(items, items)
        backward = built(list(reversed(items)), list(reversed(items)))

        assert dict(forward.rows) == dict(backward.rows)


class TestChanged:
    """Tests for changed()."""

    @pytest.mark.core
    def test_changed_is_sorted_and_filtered(self) -> None:
        """Unchanged rows are left out; the rest come sorted by key."""
        diff = built(
            [Reading("b", 1), Reading("a", 1), Reading("same", 7)],
            [Reading("b", 2), Reading("a", 3), Reading("same", 7)],
        )

        assert [key for key, _ in diff.changed()] == ["a", "b"]


readings = st.lists(
    st.builds(
        Reading,
        name=st.sampled_from(["a", "b", "sum_c", "sum_d"]),
        value=st.integers(min_value=0, max_value=10_000),
    ),
    max_size=20,
)


class TestProperties:
    """Property-based tests for the engine."""

    @pytest.mark.core
    @given(first=readings, second=readings)
    def test_summable_rows_hold_the_totals(
        self, first: list[Reading], second: list[Reading]
    ) -> None:
        """A summable row holds the sum of its items in each snapshot."""
        diff = built(first, second)

        for key, row in diff.rows.items():
            if key.startswith("sum_"):
                assert row.first == sum(r.value for r in first if r.name == key)
                assert row.second == sum(r.value for r in second if r.name == key)

    @pytest.mark.core
    @given(first=readings, second=readings)
    def test_every_key_gets_exactly_one_row(
        self, first: list[Reading], second: list[Reading]
    ) -> None:
        """The row keys are the union of the keys of both snapshots."""
        diff = built(first, second)

        assert set(diff.rows) == {r.name for r in first} | {r.name for r in second}
