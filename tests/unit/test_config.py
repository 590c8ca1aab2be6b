"""Tests for settings resolution and filter compilation."""

from pathlib import Path

import pytest
from dotenv import dotenv_values

from snapstats.config import (
    DEFAULT_PORTS,
    Settings,
    compile_filter,
    load_settings,
    persist_connection,
    split_list,
)
from snapstats.core.errors import ConfigurationError
from snapstats.core.presenter import MATCH_ALL

pytestmark = pytest.mark.tier(1)


@pytest.fixture
def dotenv_file(tmp_path: Path) -> Path:
    path = tmp_path / ".env"
    path.write_text(
        "SNAPSTATS_HOSTS=10.0.0.1,10.0.0.2\n"
        "SNAPSTATS_PORTS=7000\n"
        "SNAPSTATS_PARALLEL=4\n"
    )
    return path


class TestSplitList:
    """Tests for split_list."""

    @pytest.mark.unit
    def test_blanks_are_dropped(self) -> None:
        """Whitespace is trimmed and empty items removed."""
        assert split_list(" a, b,,c ,") == ("a", "b", "c")


class TestLoadSettings:
    """Tests for load_settings."""

    @pytest.mark.unit
    def test_defaults(self, tmp_path: Path) -> None:
        """Without any source the built-in defaults apply."""
        settings = load_settings(environ={}, dotenv_path=tmp_path / "missing.env")

        assert settings == Settings()
        assert settings.ports == DEFAULT_PORTS
        assert settings.sqlite_path == Path("snapstats") / "snapshots.db"

    @pytest.mark.unit
    def test_dotenv_over_defaults(self, dotenv_file: Path) -> None:
        """Values in the .env file replace the defaults."""
        settings = load_settings(environ={}, dotenv_path=dotenv_file)

        assert settings.hosts == ("10.0.0.1", "10.0.0.2")
        assert settings.ports == ("7000",)
        assert settings.parallel == 4

    @pytest.mark.unit
    def test_environment_over_dotenv(self, dotenv_file: Path) -> None:
        """The environment wins over the .env file."""
        settings = load_settings(
            environ={"SNAPSTATS_HOSTS": "env-host"}, dotenv_path=dotenv_file
        )

        assert settings.hosts == ("env-host",)
        assert settings.ports == ("7000",)

    @pytest.mark.unit
    def test_command_line_over_everything(self, dotenv_file: Path) -> None:
        """Command line values win; None means not given."""
        settings = load_settings(
            cli={"hosts": ["cli-host"], "ports": "9000,9300", "parallel": None},
            environ={"SNAPSTATS_HOSTS": "env-host"},
            dotenv_path=dotenv_file,
        )

        assert settings.hosts == ("cli-host",)
        assert settings.ports == ("9000", "9300")
        assert settings.parallel == 4

    @pytest.mark.unit
    def test_storage_and_directory(self, tmp_path: Path) -> None:
        """The store backend and directory can be chosen."""
        settings = load_settings(
            cli={"storage": "sqlite", "snapshot_dir": str(tmp_path)},
            environ={},
            dotenv_path=tmp_path / "missing.env",
        )

        assert settings.storage == "sqlite"
        assert settings.sqlite_path == tmp_path / "snapshots.db"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "cli",
        [
            {"ports": "70000"},
            {"ports": "http"},
            {"ports": ","},
            {"hosts": " , "},
            {"parallel": "0"},
            {"parallel": "many"},
            {"timeout": "-1"},
            {"storage": "postgres"},
        ],
    )
    def test_invalid_values(self, cli: dict, tmp_path: Path) -> None:
        """Invalid values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            load_settings(cli=cli, environ={}, dotenv_path=tmp_path / "missing.env")


class TestPersistConnection:
    """Tests for persist_connection."""

    @pytest.mark.unit
    def test_hosts_and_ports_are_written(self, tmp_path: Path) -> None:
        """The next run reads the same hosts and ports back."""
        path = tmp_path / ".env"
        settings = Settings(hosts=("a", "b"), ports=("7000", "9000"))

        persist_connection(settings, path)

        assert dotenv_values(path) == {
            "SNAPSTATS_HOSTS": "a,b",
            "SNAPSTATS_PORTS": "7000,9000",
        }
        reloaded = load_settings(environ={}, dotenv_path=path)
        assert (reloaded.hosts, reloaded.ports) == (settings.hosts, settings.ports)

    @pytest.mark.unit
    def test_other_keys_are_kept(self, dotenv_file: Path) -> None:
        """Existing keys in the file survive."""
        persist_connection(Settings(hosts=("x",)), dotenv_file)

        values = dotenv_values(dotenv_file)
        assert values["SNAPSTATS_PARALLEL"] == "4"
        assert values["SNAPSTATS_HOSTS"] == "x"


class TestCompileFilter:
    """Tests for compile_filter."""

    @pytest.mark.unit
    def test_none_matches_everything(self) -> None:
        """No pattern means every row matches."""
        assert compile_filter(None) is MATCH_ALL
        assert MATCH_ALL.search("anything")

    @pytest.mark.unit
    def test_search_semantics(self) -> None:
        """Patterns match anywhere in the value."""
        assert compile_filter("inserted").search("rows_inserted")

    @pytest.mark.unit
    def test_invalid_pattern(self) -> None:
        """A broken pattern is a configuration error."""
        with pytest.raises(ConfigurationError, match="invalid regular expression"):
            compile_filter("rows[")
