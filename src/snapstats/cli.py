"""Command line interface.

Usage:
    snapstats snapshot [--comment TEXT]
    snapstats list
    snapstats diff [-b BEGIN] [-e END]
    snapstats adhoc-diff [--interval SECONDS]
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

from snapstats import __version__
from snapstats.adapters.http.collector import Collector, HttpFetcher
from snapstats.adapters.logging import configure_logging
from snapstats.adapters.storage import JsonSnapshotStorage, SQLiteSnapshotStorage
from snapstats.config import (
    DOTENV_FILE,
    Settings,
    compile_filter,
    load_settings,
    persist_connection,
)
from snapstats.core.errors import ConfigurationError, SnapstatsError
from snapstats.core.models import SnapshotInfo
from snapstats.core.ports import SnapshotStoragePort
from snapstats.core.presenter import Filters, RenderOptions
from snapstats.service import DiffReport, adhoc_diff, diff_snapshots, take_snapshot

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1


def _common_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    connection = common.add_argument_group("connection")
    connection.add_argument("--hosts", help="comma separated hosts to poll")
    connection.add_argument("--ports", help="comma separated ports to poll")
    connection.add_argument(
        "--parallel", type=int, help="number of concurrent requests"
    )
    connection.add_argument("--timeout", type=float, help="HTTP timeout in seconds")

    store = common.add_argument_group("snapshot store")
    store.add_argument("--snapshot-dir", help="directory holding the snapshots")
    store.add_argument(
        "--storage", choices=["json", "sqlite"], help="snapshot store backend"
    )

    output = common.add_argument_group("output")
    output.add_argument("--hostname-match", help="regex on hostname:port")
    output.add_argument("--stat-name-match", help="regex on the statistic name")
    output.add_argument("--table-name-match", help="regex on the table name")
    output.add_argument(
        "--details", action="store_true", help="per table, tablet and CPU rows"
    )
    output.add_argument("--gauges", action="store_true", help="show gauge values")
    output.add_argument(
        "-v", "--verbose", action="count", default=0, help="more logging (-vv)"
    )
    output.add_argument("--silent", action="store_true", help="only log errors")
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_parser()
    parser = argparse.ArgumentParser(
        prog="snapstats",
        description="Snapshot and diff the diagnostic endpoints of a cluster.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    sub = parser.add_subparsers(dest="cmd", required=True)

    snapshot_p = sub.add_parser("snapshot", parents=[common], help="take a snapshot")
    snapshot_p.add_argument("--comment", default="", help="comment for the index")

    sub.add_parser("list", parents=[common], help="list snapshots")

    diff_p = sub.add_parser("diff", parents=[common], help="diff two snapshots")
    diff_p.add_argument("-b", "--begin", type=int, help="begin snapshot number")
    diff_p.add_argument("-e", "--end", type=int, help="end snapshot number")

    adhoc_p = sub.add_parser(
        "adhoc-diff", parents=[common], help="collect twice and diff in memory"
    )
    adhoc_p.add_argument(
        "--interval",
        type=float,
        default=10.0,
        help="seconds between the two collections",
    )
    return parser


def _settings(args: argparse.Namespace) -> Settings:
    return load_settings(
        {
            "hosts": args.hosts,
            "ports": args.ports,
            "parallel": args.parallel,
            "snapshot_dir": args.snapshot_dir,
            "storage": args.storage,
            "timeout": args.timeout,
        },
        dotenv_path=Path.cwd() / DOTENV_FILE,
    )


def _storage(settings: Settings) -> SnapshotStoragePort:
    if settings.storage == "sqlite":
        settings.snapshot_dir.mkdir(parents=True, exist_ok=True)
        return SQLiteSnapshotStorage(str(settings.sqlite_path))
    return JsonSnapshotStorage(settings.snapshot_dir)


def make_fetcher(settings: Settings) -> HttpFetcher:
    return HttpFetcher(timeout=settings.timeout)


def _collector(settings: Settings) -> Collector:
    return Collector(
        make_fetcher(settings), settings.hosts, settings.ports, settings.parallel
    )


def _filters(args: argparse.Namespace) -> Filters:
    return Filters(
        hostname=compile_filter(args.hostname_match),
        stat_name=compile_filter(args.stat_name_match),
        table_name=compile_filter(args.table_name_match),
    )


def format_snapshot(info: SnapshotInfo) -> str:
    when = datetime.fromtimestamp(info.timestamp)
    return f"{info.number:>4} {when:%Y-%m-%d %H:%M:%S} {info.comment}"


def _ask_number(prompt: str, ask: Callable[[str], str]) -> int:
    answer = ask(prompt).strip()
    try:
        return int(answer)
    except ValueError:
        raise ConfigurationError(f"not a snapshot number: {answer!r}") from None


async def _close(storage: SnapshotStoragePort) -> None:
    if isinstance(storage, SQLiteSnapshotStorage):
        await storage.close()


async def _run(
    args: argparse.Namespace,
    settings: Settings,
    ask: Callable[[str], str],
) -> list[str]:
    if args.cmd == "adhoc-diff":
        report = await adhoc_diff(_collector(settings), args.interval, args.details)
        return _render(report, args)

    storage = _storage(settings)
    try:
        if args.cmd == "snapshot":
            info = await take_snapshot(_collector(settings), storage, args.comment)
            return [f"snapshot number {info.number}"]

        snapshots = await storage.list()
        if args.cmd == "list":
            return [format_snapshot(info) for info in snapshots]

        begin, end = args.begin, args.end
        if begin is None or end is None:
            for info in snapshots:
                print(format_snapshot(info))
        if begin is None:
            begin = _ask_number("Enter begin snapshot: ", ask)
        if end is None:
            end = _ask_number("Enter end snapshot: ", ask)
        report = await diff_snapshots(storage, begin, end, args.details)
        return _render(report, args)
    finally:
        await _close(storage)


def _render(report: DiffReport, args: argparse.Namespace) -> list[str]:
    return report.render(
        _filters(args), RenderOptions(details=args.details, gauges=args.gauges)
    )


def main(
    argv: Sequence[str] | None = None,
    ask: Callable[[str], str] = input,
) -> int:
    """Run the command line; returns the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.silent)
    try:
        settings = _settings(args)
        _filters(args)
        lines = asyncio.run(_run(args, settings, ask))
        if args.hosts is not None or args.ports is not None:
            persist_connection(settings, Path.cwd() / DOTENV_FILE)
    except (SnapstatsError, OSError) as exc:
        logger.debug("command failed", exc_info=True)
        print(f"snapstats: error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    for line in lines:
        print(line)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
