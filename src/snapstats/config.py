"""Runtime settings.

Each setting is taken from the first source that has it: the command line,
the environment (SNAPSTATS_HOSTS, SNAPSTATS_PORTS, SNAPSTATS_PARALLEL,
SNAPSTATS_SNAPSHOT_DIR, SNAPSTATS_STORAGE, SNAPSTATS_TIMEOUT), a .env file in
the working directory, or the built-in default.
"""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values, set_key

from snapstats.core.errors import ConfigurationError
from snapstats.core.presenter import MATCH_ALL

logger = logging.getLogger(__name__)

ENV_PREFIX = "SNAPSTATS_"
DOTENV_FILE = ".env"

DEFAULT_HOSTS = ("127.0.0.1",)
DEFAULT_PORTS = ("7000", "9000", "12000", "13000", "9300")
DEFAULT_PARALLEL = 1
DEFAULT_SNAPSHOT_DIR = "snapstats"
DEFAULT_TIMEOUT = 10.0

STORAGE_BACKENDS = ("json", "sqlite")
SQLITE_FILE = "snapshots.db"


@dataclass(frozen=True)
class Settings:
    """Resolved settings for one invocation.

    Attributes:
        hosts: Hostnames or addresses of the cluster nodes.
        ports: Ports to poll on every host.
        parallel: Maximum number of concurrent HTTP requests.
        snapshot_dir: Directory holding the snapshot store.
        storage: Snapshot store backend, "json" or "sqlite".
        timeout: HTTP timeout in seconds.
    """

    hosts: tuple[str, ...] = DEFAULT_HOSTS
    ports: tuple[str, ...] = DEFAULT_PORTS
    parallel: int = DEFAULT_PARALLEL
    snapshot_dir: Path = field(default_factory=lambda: Path(DEFAULT_SNAPSHOT_DIR))
    storage: str = "json"
    timeout: float = DEFAULT_TIMEOUT

    @property
    def sqlite_path(self) -> Path:
        return self.snapshot_dir / SQLITE_FILE


def split_list(value: str) -> tuple[str, ...]:
    """Split a comma separated setting, dropping blanks."""
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _positive_int(name: str, value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None
    if number < 1:
        raise ConfigurationError(f"{name} must be at least 1, got {number}")
    return number


def _positive_float(name: str, value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None
    if number <= 0:
        raise ConfigurationError(f"{name} must be positive, got {number}")
    return number


def _ports(value: str) -> tuple[str, ...]:
    ports = split_list(value)
    for port in ports:
        if not port.isdigit() or not 0 < int(port) < 65536:
            raise ConfigurationError(f"invalid port: {port!r}")
    return ports


def load_settings(
    cli: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
    dotenv_path: str | Path = DOTENV_FILE,
) -> Settings:
    """Resolve the settings from all sources.

    Args:
        cli: Values given on the command line. Keys are the Settings field
            names; None values are ignored. hosts and ports may be sequences
            or comma separated strings.
        environ: Environment to read. Defaults to os.environ.
        dotenv_path: .env file to read; a missing file is ignored.

    Returns:
        The resolved Settings.

    Raises:
        ConfigurationError: If a value is invalid.
    """
    cli = {key: value for key, value in (cli or {}).items() if value is not None}
    environ = os.environ if environ is None else environ
    dotenv = {
        key: value
        for key, value in dotenv_values(dotenv_path).items()
        if value is not None
    }

    def pick(name: str) -> str | None:
        if name in cli:
            value = cli[name]
            if isinstance(value, (list, tuple)):
                return ",".join(str(item) for item in value)
            return str(value)
        env_key = f"{ENV_PREFIX}{name.upper()}"
        if env_key in environ:
            return environ[env_key]
        return dotenv.get(env_key)

    defaults = Settings()
    hosts = pick("hosts")
    ports = pick("ports")
    parallel = pick("parallel")
    snapshot_dir = pick("snapshot_dir")
    storage = pick("storage")
    timeout = pick("timeout")

    settings = Settings(
        hosts=split_list(hosts) if hosts is not None else defaults.hosts,
        ports=_ports(ports) if ports is not None else defaults.ports,
        parallel=(
            _positive_int("parallel", parallel)
            if parallel is not None
            else defaults.parallel
        ),
        snapshot_dir=(
            Path(snapshot_dir) if snapshot_dir is not None else defaults.snapshot_dir
        ),
        storage=storage if storage is not None else defaults.storage,
        timeout=(
            _positive_float("timeout", timeout)
            if timeout is not None
            else defaults.timeout
        ),
    )
    if not settings.hosts:
        raise ConfigurationError("at least one host is required")
    if not settings.ports:
        raise ConfigurationError("at least one port is required")
    if settings.storage not in STORAGE_BACKENDS:
        raise ConfigurationError(
            f"storage must be one of {', '.join(STORAGE_BACKENDS)}, "
            f"got {settings.storage!r}"
        )
    logger.debug("resolved settings: %s", settings)
    return settings


def persist_connection(
    settings: Settings, dotenv_path: str | Path = DOTENV_FILE
) -> None:
    """Write hosts and ports to the .env file so the next run reuses them."""
    path = Path(dotenv_path)
    path.touch(exist_ok=True)
    set_key(str(path), f"{ENV_PREFIX}HOSTS", ",".join(settings.hosts))
    set_key(str(path), f"{ENV_PREFIX}PORTS", ",".join(settings.ports))
    logger.info("saved hosts and ports to %s", path)


def compile_filter(pattern: str | None) -> re.Pattern[str]:
    """Compile a user supplied filter; None matches everything.

    Raises:
        ConfigurationError: If the pattern is not a valid regular expression.
    """
    if pattern is None:
        return MATCH_ALL
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigurationError(
            f"invalid regular expression {pattern!r}: {exc}"
        ) from exc
