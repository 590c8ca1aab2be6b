"""Tests for the statistic metadata lookup."""

import logging

import pytest

from snapstats.core.metadata import (
    SENTINEL,
    StatisticsTable,
    countsum_statistics,
    unit_divisor,
    unit_suffix,
    value_statistics,
)

pytestmark = pytest.mark.tier(1)


class TestUnitTables:
    """Tests for the unit -> suffix and unit -> divisor side tables."""

    @pytest.mark.core
    @pytest.mark.parametrize(
        ("unit", "suffix", "divisor"),
        [
            ("microseconds", "us", 1_000_000),
            ("milliseconds", "ms", 1_000),
            ("bytes", "bytes", 1),
            ("requests", "reqs", 1),
        ],
    )
    def test_known_units(self, unit: str, suffix: str, divisor: int) -> None:
        """Known units map to their abbreviation and divisor."""
        assert unit_suffix(unit) == suffix
        assert unit_divisor(unit) == divisor

    @pytest.mark.core
    def test_unknown_unit_falls_back(self) -> None:
        """An unknown unit has suffix "?" and divisor 1."""
        assert unit_suffix("furlongs") == "?"
        assert unit_divisor("furlongs") == 1


class TestStatisticsTable:
    """Tests for StatisticsTable.lookup."""

    @pytest.mark.core
    def test_lookup_known_gauge(self) -> None:
        """mem_tracker is a gauge measured in bytes."""
        details = value_statistics().lookup("mem_tracker")

        assert details.kind == "gauge"
        assert details.is_gauge
        assert details.unit_suffix == "bytes"

    @pytest.mark.core
    def test_lookup_known_counter(self) -> None:
        """rows_inserted is a counter, not a gauge."""
        details = value_statistics().lookup("rows_inserted")

        assert details.kind == "counter"
        assert not details.is_gauge

    @pytest.mark.core
    def test_lookup_countsum_statistic(self) -> None:
        """CountSum statistics have their own table."""
        details = countsum_statistics().lookup("log_append_latency")

        assert details.unit_suffix == "us"
        assert details.divisor == 1_000_000

    @pytest.mark.core
    @pytest.mark.tra("Core.Metadata.SentinelOnMiss")
    def test_unknown_name_returns_sentinel_every_time(self) -> None:
        """An unknown name returns the sentinel deterministically, never raises."""
        table = StatisticsTable([("known", "bytes", "gauge")])

        first = table.lookup("unknown_metric_xyz")
        second = table.lookup("unknown_metric_xyz")

        assert first == second == SENTINEL
        assert first.unit_suffix == "?"
        assert first.divisor == 1
        assert not first.is_gauge

    @pytest.mark.core
    def test_unknown_name_logged_once(self, caplog: pytest.LogCaptureFixture) -> None:
        """The miss is logged at INFO level once per name."""
        table = StatisticsTable([])

        with caplog.at_level(logging.INFO, logger="snapstats.core.metadata"):
            table.lookup("mystery")
            table.lookup("mystery")

        messages = [r.getMessage() for r in caplog.records]
        assert messages.count("statistic not found: mystery") == 1

    @pytest.mark.core
    def test_tables_are_built_once(self) -> None:
        """The factory functions return the same table on every call."""
        assert value_statistics() is value_statistics()
        assert countsum_statistics() is countsum_statistics()

    @pytest.mark.core
    def test_empty_table_has_no_entries(self) -> None:
        """An empty table still answers lookups."""
        table = StatisticsTable([])

        assert len(table) == 0
        assert "mem_tracker" not in table
        assert table.lookup("mem_tracker") is SENTINEL
