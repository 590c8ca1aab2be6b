"""BDD step definitions for snapshot diff features."""

import pytest
from pytest_bdd import given, parsers, then, when
from tests.features.diff.steps_helpers import (
    DiffScenarioContext,
    add_metrics,
    add_tablet_server,
    diff,
    lines_for,
    render,
    value_entity,
)

from snapstats.core.encoding.records import IS_LEADER, TABLET_SERVERS
from snapstats.core.presenter import RenderOptions


@pytest.fixture
def ctx() -> DiffScenarioContext:
    """Fresh scenario context for each test."""
    return DiffScenarioContext()


# === Snapshot Steps ===
@given(
    parsers.parse(
        'the first snapshot has "{name}" = {value:d} on "{host}" at {timestamp:g}'
    )
)
def step_first_value(
    ctx: DiffScenarioContext, name: str, value: int, host: str, timestamp: float
) -> None:
    add_metrics(
        ctx.first, [value_entity(host, "server", "yb.tserver", name, value, timestamp)]
    )
    ctx.first_snapshot_time = timestamp


@given(
    parsers.parse(
        'the second snapshot has "{name}" = {value:d} on "{host}" at {timestamp:g}'
    )
)
def step_second_value(
    ctx: DiffScenarioContext, name: str, value: int, host: str, timestamp: float
) -> None:
    add_metrics(
        ctx.second,
        [value_entity(host, "server", "yb.tserver", name, value, timestamp)],
    )


@given(
    parsers.parse(
        'the {which} snapshot has {count:d} tablets with "{name}" = {value:d} '
        'on "{host}" at {timestamp:g}'
    )
)
def step_tablets(
    ctx: DiffScenarioContext,
    which: str,
    count: int,
    name: str,
    value: int,
    host: str,
    timestamp: float,
) -> None:
    collection = ctx.first if which == "first" else ctx.second
    add_metrics(
        collection,
        [
            value_entity(host, "tablet", f"tablet-{i}", name, value, timestamp)
            for i in range(count)
        ],
    )
    if which == "first":
        ctx.first_snapshot_time = timestamp


# === Cluster Steps ===
@given(
    parsers.parse(
        'the master leader "{leader}" lists tablet server "{server}" '
        "up for {uptime:d} seconds"
    )
)
def step_first_tablet_server(
    ctx: DiffScenarioContext, leader: str, server: str, uptime: int
) -> None:
    add_tablet_server(ctx.first, leader, server, uptime)


@given(
    parsers.parse(
        'later the master leader "{leader}" lists tablet server "{server}" '
        "up for {uptime:d} seconds"
    )
)
def step_second_tablet_server(
    ctx: DiffScenarioContext, leader: str, server: str, uptime: int
) -> None:
    add_tablet_server(ctx.second, leader, server, uptime)


@given("no master leader was found in the first snapshot")
def step_no_leader(ctx: DiffScenarioContext) -> None:
    ctx.first[TABLET_SERVERS] = []
    ctx.first[IS_LEADER] = []


# === Diff Steps ===
@when("the snapshots are diffed")
def step_diff(ctx: DiffScenarioContext) -> None:
    diff(ctx)


@when("the snapshots are diffed in detail mode")
def step_diff_details(ctx: DiffScenarioContext) -> None:
    ctx.detail_mode = True
    diff(ctx)


@when("the report is rendered with gauges")
def step_render_gauges(ctx: DiffScenarioContext) -> None:
    render(ctx, RenderOptions(details=ctx.detail_mode, gauges=True))


# === Report Steps ===
@then(parsers.parse('the report shows "{name}" as "{expected}"'))
def step_report_shows(ctx: DiffScenarioContext, name: str, expected: str) -> None:
    (line,) = lines_for(ctx, name)
    assert line.endswith(expected), line


@then(parsers.parse('the report does not show "{name}"'))
def step_report_hides(ctx: DiffScenarioContext, name: str) -> None:
    assert lines_for(ctx, name) == []


@then(parsers.parse('the report has {count:d} lines for "{name}"'))
def step_report_count(ctx: DiffScenarioContext, count: int, name: str) -> None:
    assert len(lines_for(ctx, name)) == count


@then(parsers.parse('the report contains "{expected}"'))
def step_report_contains(ctx: DiffScenarioContext, expected: str) -> None:
    assert expected in ctx.lines
