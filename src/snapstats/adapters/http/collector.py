"""Collection of diagnostic payloads over HTTP.

HttpFetcher fans one endpoint out to every host and port with bounded
concurrency. Collector turns the payloads into records with the parsers of
snapstats.core.encoding. A host that cannot be reached, or answers with
something unparseable, contributes nothing; the rest of the collection goes
on.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from typing import TypeVar

import httpx

from snapstats.core.encoding.cluster_json import (
    find_leader,
    parse_is_leader,
    parse_masters,
    parse_tablet_servers,
    parse_vars,
)
from snapstats.core.encoding.metrics_json import parse_metrics
from snapstats.core.encoding.prometheus import parse_node_exporter
from snapstats.core.models import (
    Entity,
    LeaderStatus,
    MasterEntry,
    NodeExporterSample,
    RawPayload,
    TabletServerEntry,
    VarsEntry,
)
from snapstats.core.ports import FetchPort

logger = logging.getLogger(__name__)

NODE_EXPORTER_PORT = "9300"

METRICS_ENDPOINT = "metrics"
MASTERS_ENDPOINT = "api/v1/masters"
TABLET_SERVERS_ENDPOINT = "api/v1/tablet-servers"
VARS_ENDPOINT = "api/v1/varz"
IS_LEADER_ENDPOINT = "api/v1/is-leader"

DEFAULT_TIMEOUT = 10.0

T = TypeVar("T")


class HttpFetcher:
    """FetchPort implementation on httpx.

    Args:
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (e.g., httpx.MockTransport in
            tests).
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def fetch(
        self,
        hosts: Sequence[str],
        ports: Sequence[str],
        endpoint: str,
        parallel: int,
    ) -> list[RawPayload]:
        semaphore = asyncio.Semaphore(max(1, parallel))
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            return list(
                await asyncio.gather(
                    *(
                        self._fetch_one(client, semaphore, f"{host}:{port}", endpoint)
                        for host in hosts
                        for port in ports
                    )
                )
            )

    async def _fetch_one(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        hostname_port: str,
        endpoint: str,
    ) -> RawPayload:
        async with semaphore:
            timestamp = time.time()
            try:
                response = await client.get(f"http://{hostname_port}/{endpoint}")
                response.raise_for_status()
                body = response.text
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                logger.debug(
                    "fetch failed: %s",
                    exc,
                    extra={"hostname_port": hostname_port, "endpoint": endpoint},
                )
                body = ""
        return RawPayload(
            hostname_port=hostname_port,
            endpoint=endpoint,
            timestamp=timestamp,
            body=body,
        )


class Collector:
    """Fetch and parse every kind of record a snapshot holds.

    Args:
        fetcher: A FetchPort implementation.
        hosts: Hostnames or addresses of the cluster nodes.
        ports: Ports to poll on every host. The node-exporter port is only
            used for node-exporter metrics.
        parallel: Maximum number of concurrent requests.
    """

    def __init__(
        self,
        fetcher: FetchPort,
        hosts: Sequence[str],
        ports: Sequence[str],
        parallel: int = 1,
    ) -> None:
        self._fetcher = fetcher
        self._hosts = list(hosts)
        self._ports = [str(port) for port in ports]
        self._parallel = parallel

    @property
    def server_ports(self) -> list[str]:
        return [port for port in self._ports if port != NODE_EXPORTER_PORT]

    @property
    def node_exporter_ports(self) -> list[str]:
        return [port for port in self._ports if port == NODE_EXPORTER_PORT]

    async def _collect(
        self,
        ports: Sequence[str],
        endpoint: str,
        parse: Callable[[str, str, float], list[T]],
    ) -> list[T]:
        if not ports or not self._hosts:
            return []
        payloads = await self._fetcher.fetch(
            self._hosts, ports, endpoint, self._parallel
        )
        records: list[T] = []
        for payload in payloads:
            try:
                parsed = parse(payload.body, payload.hostname_port, payload.timestamp)
            except (TypeError, ValueError, KeyError, AttributeError) as exc:
                logger.debug(
                    "unable to parse %s: %r",
                    endpoint,
                    exc,
                    extra={
                        "hostname_port": payload.hostname_port,
                        "endpoint": endpoint,
                    },
                )
                continue
            records.extend(parsed)
        logger.debug("collected %d records from %s", len(records), endpoint)
        return records

    async def metrics(self) -> list[Entity]:
        return await self._collect(self.server_ports, METRICS_ENDPOINT, parse_metrics)

    async def node_exporter(self) -> list[NodeExporterSample]:
        return await self._collect(
            self.node_exporter_ports, METRICS_ENDPOINT, parse_node_exporter
        )

    async def masters(self) -> list[MasterEntry]:
        return await self._collect(self.server_ports, MASTERS_ENDPOINT, parse_masters)

    async def tablet_servers(self) -> list[TabletServerEntry]:
        return await self._collect(
            self.server_ports, TABLET_SERVERS_ENDPOINT, parse_tablet_servers
        )

    async def vars(self) -> list[VarsEntry]:
        return await self._collect(self.server_ports, VARS_ENDPOINT, parse_vars)

    async def leader_statuses(self) -> list[LeaderStatus]:
        return await self._collect(
            self.server_ports, IS_LEADER_ENDPOINT, parse_is_leader
        )

    async def leader(self) -> str:
        """Return the hostname:port of the master leader, "" if none answered."""
        return find_leader(await self.leader_statuses())
