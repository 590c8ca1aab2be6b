"""Shared test fixtures for all test modules."""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest

from snapstats.core.models import Attributes, Entity, Sample


@pytest.fixture
def snapshot_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for the JSON snapshot store."""
    return tmp_path / "snapshots"


@pytest.fixture
def sqlite_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for the SQLite snapshot store."""
    return str(tmp_path / "snapshots.db")


@pytest.fixture
def make_entity() -> Callable[..., Entity]:
    """Factory fixture for metric entities.

    Usage:
        entity = make_entity("tablet", "t1", [Value("rows_inserted", 10)])
    """

    def _entity(
        entity_type: str,
        entity_id: str,
        samples: list[Sample],
        hostname_port: str = "node1:9000",
        timestamp: float = 1000.0,
        table_name: str | None = None,
        namespace_name: str | None = None,
    ) -> Entity:
        return Entity(
            hostname_port=hostname_port,
            entity_type=entity_type,
            entity_id=entity_id,
            timestamp=timestamp,
            attributes=Attributes(
                namespace_name=namespace_name, table_name=table_name
            ),
            samples=samples,
        )

    return _entity


@pytest.fixture
def cluster_transport() -> Callable[..., httpx.MockTransport]:
    """Factory fixture for an httpx.MockTransport serving a fake cluster.

    Routes map "host:port/path" to a body; anything else answers 404.
    """

    def _transport(routes: dict[str, str]) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            key = f"{request.url.host}:{request.url.port}{request.url.path}"
            if key in routes:
                return httpx.Response(200, text=routes[key])
            return httpx.Response(404)

        return httpx.MockTransport(handler)

    return _transport


@pytest.fixture(autouse=True)
def _restore_snapstats_logger() -> Iterator[None]:
    """Undo configure_logging after each test so caplog keeps working."""
    logger = logging.getLogger("snapstats")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
