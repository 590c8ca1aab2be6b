"""Parsers for the cluster JSON endpoints (masters, tablet servers, vars, is-leader).

Every parser takes the raw body of one endpoint of one server and returns
records stamped with that server's hostname:port and the fetch time. A body
that cannot be parsed yields an empty list; the failure is logged at DEBUG
level and never raised.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import asdict
from typing import Any

from snapstats.core.models import (
    LeaderStatus,
    MasterEntry,
    TabletServerEntry,
    Var,
    VarsEntry,
)

logger = logging.getLogger(__name__)


def _loads(body: str, hostname_port: str, endpoint: str) -> Any:
    """Parse a JSON body, returning None (and logging) on failure."""
    if not body:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        logger.debug(
            "unable to parse %s from %s: %s",
            endpoint,
            hostname_port,
            exc,
            extra={"hostname_port": hostname_port, "endpoint": endpoint},
        )
        return None


def _host_ports(addresses: Any) -> tuple[str, ...]:
    if not isinstance(addresses, list):
        return ()
    return tuple(
        f"{address.get('host', '')}:{address.get('port', '')}"
        for address in addresses
        if isinstance(address, dict)
    )


def parse_masters(body: str, hostname_port: str, timestamp: float) -> list[MasterEntry]:
    """Parse the body of api/v1/masters.

    Args:
        body: JSON document of the form {"masters": [...]}.
        hostname_port: Server the body was fetched from.
        timestamp: Fetch time.

    Returns:
        One MasterEntry per listed master.
    """
    document = _loads(body, hostname_port, "api/v1/masters")
    if not isinstance(document, dict) or not isinstance(document.get("masters"), list):
        return []
    entries = []
    for master in document["masters"]:
        try:
            entries.append(_master_entry(master, hostname_port, timestamp))
        except (AttributeError, TypeError, ValueError) as exc:
            logger.debug("skipping master record from %s: %s", hostname_port, exc)
    return entries


def _master_entry(master: Any, hostname_port: str, timestamp: float) -> MasterEntry:
    instance = master.get("instance_id") or {}
    registration = master.get("registration") or {}
    cloud_info = registration.get("cloud_info") or {}
    error = master.get("error")
    return MasterEntry(
        hostname_port=hostname_port,
        timestamp=timestamp,
        permanent_uuid=str(instance.get("permanent_uuid", "")),
        instance_seqno=int(instance.get("instance_seqno", 0)),
        start_time_us=int(instance.get("start_time_us", 0)),
        role=str(master.get("role", "UNKNOWN_ROLE")),
        placement_cloud=str(cloud_info.get("placement_cloud", "-")),
        placement_region=str(cloud_info.get("placement_region", "-")),
        placement_zone=str(cloud_info.get("placement_zone", "-")),
        placement_uuid=str(registration.get("placement_uuid", "-")),
        private_rpc_addresses=_host_ports(registration.get("private_rpc_addresses")),
        http_addresses=_host_ports(registration.get("http_addresses")),
        error=json.dumps(error) if error is not None else None,
    )


def parse_tablet_servers(
    body: str, hostname_port: str, timestamp: float
) -> list[TabletServerEntry]:
    """Parse the body of api/v1/tablet-servers.

    The servers are found in a map under the empty key, keyed by the tablet
    server's hostname:port.
    """
    document = _loads(body, hostname_port, "api/v1/tablet-servers")
    if not isinstance(document, dict) or not isinstance(document.get(""), dict):
        return []
    entries = []
    for tablet_server, details in document[""].items():
        try:
            entries.append(
                TabletServerEntry(
                    hostname_port=hostname_port,
                    timestamp=timestamp,
                    tablet_server=tablet_server,
                    status=str(details.get("status", "")),
                    uptime_seconds=int(details.get("uptime_seconds", 0)),
                    time_since_hb_sec=float(details.get("time_since_hb_sec", 0.0)),
                    ram_used_bytes=int(details.get("ram_used_bytes", 0)),
                    num_sst_files=int(details.get("num_sst_files", 0)),
                    read_ops_per_sec=float(details.get("read_ops_per_sec", 0.0)),
                    write_ops_per_sec=float(details.get("write_ops_per_sec", 0.0)),
                    active_tablets=int(details.get("active_tablets", 0)),
                    cloud=str(details.get("cloud", "")),
                    region=str(details.get("region", "")),
                    zone=str(details.get("zone", "")),
                )
            )
        except (AttributeError, TypeError, ValueError) as exc:
            logger.debug(
                "skipping tablet server %s from %s: %s",
                tablet_server,
                hostname_port,
                exc,
            )
    return entries


def parse_vars(body: str, hostname_port: str, timestamp: float) -> list[VarsEntry]:
    """Parse the body of api/v1/varz ({"flags": [{name, value, type}]})."""
    document = _loads(body, hostname_port, "api/v1/varz")
    if not isinstance(document, dict) or not isinstance(document.get("flags"), list):
        return []
    flags = [
        Var(
            name=str(flag.get("name", "")),
            value=str(flag.get("value", "")),
            var_type=str(flag.get("type", "")),
        )
        for flag in document["flags"]
        if isinstance(flag, dict) and "name" in flag
    ]
    return [VarsEntry(hostname_port=hostname_port, timestamp=timestamp, flags=flags)]


def parse_is_leader(
    body: str, hostname_port: str, timestamp: float
) -> list[LeaderStatus]:
    """Parse the body of api/v1/is-leader ({"STATUS": "OK"} on the leader)."""
    document = _loads(body, hostname_port, "api/v1/is-leader")
    if not isinstance(document, dict):
        return []
    return [
        LeaderStatus(
            hostname_port=hostname_port,
            timestamp=timestamp,
            status=str(document.get("STATUS", "")),
        )
    ]


def find_leader(statuses: Iterable[LeaderStatus]) -> str:
    """Return the hostname:port of the master leader, "" when there is none."""
    for status in statuses:
        if status.status == "OK":
            return status.hostname_port
    return ""


# --- snapshot codecs ---


def encode_masters(entries: Iterable[MasterEntry]) -> list[dict[str, Any]]:
    return [
        {
            "hostname_port": entry.hostname_port,
            "timestamp": entry.timestamp,
            "permanent_uuid": entry.permanent_uuid,
            "instance_seqno": entry.instance_seqno,
            "start_time_us": entry.start_time_us,
            "role": entry.role,
            "placement_cloud": entry.placement_cloud,
            "placement_region": entry.placement_region,
            "placement_zone": entry.placement_zone,
            "placement_uuid": entry.placement_uuid,
            "private_rpc_addresses": list(entry.private_rpc_addresses),
            "http_addresses": list(entry.http_addresses),
            "error": entry.error,
        }
        for entry in entries
    ]


def decode_masters(objects: Iterable[dict[str, Any]]) -> list[MasterEntry]:
    return [
        MasterEntry(
            **{
                **obj,
                "private_rpc_addresses": tuple(obj.get("private_rpc_addresses", ())),
                "http_addresses": tuple(obj.get("http_addresses", ())),
            }
        )
        for obj in objects
    ]


def encode_tablet_servers(
    entries: Iterable[TabletServerEntry],
) -> list[dict[str, Any]]:
    return [asdict(entry) for entry in entries]


def decode_tablet_servers(
    objects: Iterable[dict[str, Any]],
) -> list[TabletServerEntry]:
    return [TabletServerEntry(**obj) for obj in objects]


def encode_vars(entries: Iterable[VarsEntry]) -> list[dict[str, Any]]:
    return [
        {
            "hostname_port": entry.hostname_port,
            "timestamp": entry.timestamp,
            "flags": [
                {"name": flag.name, "value": flag.value, "type": flag.var_type}
                for flag in entry.flags
            ],
        }
        for entry in entries
    ]


def decode_vars(objects: Iterable[dict[str, Any]]) -> list[VarsEntry]:
    return [
        VarsEntry(
            hostname_port=obj["hostname_port"],
            timestamp=obj["timestamp"],
            flags=[
                Var(name=flag["name"], value=flag["value"], var_type=flag["type"])
                for flag in obj.get("flags", [])
            ],
        )
        for obj in objects
    ]


def encode_leader_statuses(
    statuses: Iterable[LeaderStatus],
) -> list[dict[str, Any]]:
    return [asdict(status) for status in statuses]


def decode_leader_statuses(
    objects: Iterable[dict[str, Any]],
) -> list[LeaderStatus]:
    return [LeaderStatus(**obj) for obj in objects]
