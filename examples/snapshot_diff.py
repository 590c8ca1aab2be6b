"""Example: snapshot a cluster twice and print what changed.

Run with:
    python examples/snapshot_diff.py --hosts 10.0.0.1,10.0.0.2 --interval 30

What it does:
    Takes a snapshot into a SQLite store, waits, takes a second one and
    prints the diff of the two, table by table. The store is kept in
    ./example-snapshots so the snapshots can be diffed again later with
    `snapstats diff --storage sqlite --snapshot-dir example-snapshots`.
"""

import argparse
import asyncio
from pathlib import Path

from snapstats.adapters.http import Collector, HttpFetcher
from snapstats.adapters.logging import configure_logging
from snapstats.adapters.storage import SQLiteSnapshotStorage
from snapstats.config import DEFAULT_PORTS, compile_filter, split_list
from snapstats.core.presenter import Filters, RenderOptions
from snapstats.service import diff_snapshots, take_snapshot

SNAPSHOT_DIR = Path("example-snapshots")


async def run(hosts: list[str], interval: float, table: str | None) -> None:
    SNAPSHOT_DIR.mkdir(exist_ok=True)
    storage = SQLiteSnapshotStorage(str(SNAPSHOT_DIR / "snapshots.db"))
    collector = Collector(HttpFetcher(), hosts, DEFAULT_PORTS, parallel=4)

    begin = await take_snapshot(collector, storage, comment="example begin")
    await asyncio.sleep(interval)
    end = await take_snapshot(collector, storage, comment="example end")

    report = await diff_snapshots(storage, begin.number, end.number)
    filters = Filters(table_name=compile_filter(table))
    for line in report.render(filters, RenderOptions(gauges=True)):
        print(line)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--hosts", default="127.0.0.1")
    parser.add_argument("--interval", type=float, default=10.0)
    parser.add_argument("--table", help="only show rows of matching tables")
    args = parser.parse_args()

    configure_logging(verbose=1)
    asyncio.run(run(list(split_list(args.hosts)), args.interval, args.table))


if __name__ == "__main__":
    main()
