"""End-to-end tests of the command line against a mocked cluster."""

from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest
from dotenv import dotenv_values
from tests.payloads import (
    MASTER_UUID_1,
    NODE_EXPORTER_BODY,
    masters_body,
    metrics_body,
    tablet_servers_body,
    varz_body,
)

from snapstats import __version__
from snapstats.adapters.http import HttpFetcher
from snapstats.cli import build_parser, main

pytestmark = pytest.mark.tier(2)

TransportFactory = Callable[[dict[str, str]], httpx.MockTransport]

CONNECTION = ["--hosts", "node1", "--ports", "7000,9000,9300"]


def cluster_routes(rows_inserted: int = 100) -> dict[str, str]:
    return {
        "node1:9000/metrics": metrics_body(rows_inserted=rows_inserted),
        "node1:9000/api/v1/varz": varz_body(max_clock_skew_usec="500000"),
        "node1:7000/api/v1/masters": masters_body(MASTER_UUID_1),
        "node1:7000/api/v1/tablet-servers": tablet_servers_body(),
        "node1:7000/api/v1/is-leader": '{"STATUS": "OK"}',
        "node1:9300/metrics": NODE_EXPORTER_BODY,
    }


@pytest.fixture
def routes() -> dict[str, str]:
    return cluster_routes()


@pytest.fixture(autouse=True)
def workdir(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    routes: dict[str, str],
    cluster_transport: TransportFactory,
) -> Iterator[Path]:
    """Run every command in an empty directory against the fake cluster."""
    for name in ("HOSTS", "PORTS", "PARALLEL", "SNAPSHOT_DIR", "STORAGE", "TIMEOUT"):
        monkeypatch.delenv(f"SNAPSTATS_{name}", raising=False)
    monkeypatch.chdir(tmp_path)
    transport = cluster_transport(routes)
    monkeypatch.setattr(
        "snapstats.cli.make_fetcher",
        lambda settings: HttpFetcher(timeout=settings.timeout, transport=transport),
    )
    yield tmp_path


def no_input(prompt: str) -> str:
    raise AssertionError(f"unexpected prompt: {prompt}")


class TestParser:
    """Tests for the argument parser."""

    @pytest.mark.unit
    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--version prints the package version."""
        with pytest.raises(SystemExit) as excinfo:
            build_parser().parse_args(["--version"])

        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out

    @pytest.mark.unit
    def test_command_is_required(self) -> None:
        """Running without a command is a usage error."""
        with pytest.raises(SystemExit) as excinfo:
            build_parser().parse_args([])

        assert excinfo.value.code == 2

    @pytest.mark.unit
    def test_defaults(self) -> None:
        """Options that were not given stay None so other sources apply."""
        args = build_parser().parse_args(["adhoc-diff"])

        assert args.hosts is None
        assert args.interval == 10.0
        assert args.verbose == 0


class TestSnapshotAndList:
    """Tests for the snapshot and list commands."""

    @pytest.mark.integration
    def test_snapshot_then_list(
        self, workdir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Snapshots are numbered from 0 and listed with their comment."""
        assert main(["snapshot", *CONNECTION, "--comment", "first"], no_input) == 0
        assert main(["snapshot"], no_input) == 0
        out = capsys.readouterr().out
        assert out.splitlines() == ["snapshot number 0", "snapshot number 1"]

        assert main(["list"], no_input) == 0

        listed = capsys.readouterr().out.splitlines()
        assert len(listed) == 2
        assert listed[0].startswith("   0 ")
        assert listed[0].endswith(" first")
        assert (workdir / "snapstats" / "0" / "metrics.json").exists()

    @pytest.mark.integration
    def test_connection_is_remembered(self, workdir: Path) -> None:
        """--hosts and --ports are saved to .env in the working directory."""
        assert main(["snapshot", *CONNECTION], no_input) == 0

        assert dotenv_values(workdir / ".env") == {
            "SNAPSTATS_HOSTS": "node1",
            "SNAPSTATS_PORTS": "7000,9000,9300",
        }

    @pytest.mark.integration
    def test_sqlite_backend(
        self, workdir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """The SQLite store is a file in the snapshot directory."""
        args = [*CONNECTION, "--storage", "sqlite", "--snapshot-dir", "db"]

        assert main(["snapshot", *args], no_input) == 0
        assert main(["list", *args], no_input) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "snapshot number 0"
        assert lines[1].startswith("   0 ")
        assert (workdir / "db" / "snapshots.db").exists()


class TestDiff:
    """Tests for the diff command."""

    @pytest.fixture
    def two_snapshots(self, routes: dict[str, str]) -> None:
        assert main(["snapshot", *CONNECTION], no_input) == 0
        routes.update(cluster_routes(rows_inserted=150))
        assert main(["snapshot"], no_input) == 0

    @pytest.mark.integration
    @pytest.mark.usefixtures("two_snapshots")
    def test_diff_with_numbers(self, capsys: pytest.CaptureFixture[str]) -> None:
        """-b and -e select the snapshots without prompting."""
        capsys.readouterr()

        assert main(["diff", "-b", "0", "-e", "1"], no_input) == 0

        out = capsys.readouterr().out
        assert "rows_inserted" in out
        assert "mem_tracker" not in out

    @pytest.mark.integration
    @pytest.mark.usefixtures("two_snapshots")
    def test_diff_with_gauges(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--gauges adds gauge values to the report."""
        capsys.readouterr()

        assert main(["diff", "-b", "0", "-e", "1", "--gauges"], no_input) == 0

        assert "mem_tracker" in capsys.readouterr().out

    @pytest.mark.integration
    @pytest.mark.usefixtures("two_snapshots")
    def test_diff_prompts_for_missing_numbers(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Without -b and -e the snapshots are listed and both are asked for."""
        capsys.readouterr()
        answers = iter(["0", "1"])
        prompts: list[str] = []

        def ask(prompt: str) -> str:
            prompts.append(prompt)
            return next(answers)

        assert main(["diff"], ask) == 0

        assert prompts == ["Enter begin snapshot: ", "Enter end snapshot: "]
        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("   0 ")
        assert out[1].startswith("   1 ")
        assert any("rows_inserted" in line for line in out)

    @pytest.mark.integration
    @pytest.mark.usefixtures("two_snapshots")
    def test_filters(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--stat-name-match limits the report to matching statistics."""
        capsys.readouterr()

        assert main(["diff", "-b", "0", "-e", "1", "--stat-name-match", "^x$"]) == 0

        assert capsys.readouterr().out == ""

    @pytest.mark.integration
    @pytest.mark.usefixtures("two_snapshots")
    def test_unknown_snapshot(self, capsys: pytest.CaptureFixture[str]) -> None:
        """An unknown snapshot number exits with status 1."""
        assert main(["diff", "-b", "0", "-e", "9"], no_input) == 1

        err = capsys.readouterr().err
        assert "snapstats: error: Unable to find snapshot number: 9" in err

    @pytest.mark.integration
    @pytest.mark.usefixtures("two_snapshots")
    def test_corrupt_snapshot(
        self, workdir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A truncated label file exits with status 1 and names the data."""
        (workdir / "snapstats" / "1" / "metrics.json").write_text("[{trunc")

        assert main(["diff", "-b", "0", "-e", "1"], no_input) == 1

        err = capsys.readouterr().err
        assert "snapstats: error: Corrupt 'metrics' data in snapshot number: 1" in err

    @pytest.mark.integration
    def test_not_a_number(self, capsys: pytest.CaptureFixture[str]) -> None:
        """An answer that is not a number exits with status 1."""
        assert main(["diff", "-e", "1"], lambda prompt: "first") == 1

        assert "not a snapshot number" in capsys.readouterr().err

    @pytest.mark.integration
    def test_invalid_filter(self, capsys: pytest.CaptureFixture[str]) -> None:
        """A broken regular expression exits before anything is read."""
        assert main(["diff", "--hostname-match", "node[", "-b", "0", "-e", "1"]) == 1

        assert "invalid regular expression" in capsys.readouterr().err


class TestAdhocDiff:
    """Tests for the adhoc-diff command."""

    @pytest.mark.integration
    def test_nothing_changed(
        self, workdir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Two identical collections give an empty report and store nothing."""
        assert main(["adhoc-diff", *CONNECTION, "--interval", "0.01"]) == 0

        assert capsys.readouterr().out == ""
        assert not (workdir / "snapstats").exists()
