"""Snapshot labels and the codec used for each of them.

Snapshot stores persist records per label as JSON-compatible objects; this
module maps a label to the functions that convert its records.
"""

import json
from collections.abc import Callable, Iterable
from typing import Any, NamedTuple

from snapstats.core.encoding import cluster_json, metrics_json, prometheus
from snapstats.core.errors import SnapshotStorageError

METRICS = "metrics"
NODE_EXPORTER = "node_exporter"
MASTERS = "masters"
TABLET_SERVERS = "tablet_servers"
VARS = "vars"
IS_LEADER = "is_leader"


class Codec(NamedTuple):
    encode: Callable[[Iterable[Any]], list[dict[str, Any]]]
    decode: Callable[[Iterable[dict[str, Any]]], list[Any]]


CODECS: dict[str, Codec] = {
    METRICS: Codec(metrics_json.encode_entities, metrics_json.decode_entities),
    NODE_EXPORTER: Codec(prometheus.encode_samples, prometheus.decode_samples),
    MASTERS: Codec(cluster_json.encode_masters, cluster_json.decode_masters),
    TABLET_SERVERS: Codec(
        cluster_json.encode_tablet_servers, cluster_json.decode_tablet_servers
    ),
    VARS: Codec(cluster_json.encode_vars, cluster_json.decode_vars),
    IS_LEADER: Codec(
        cluster_json.encode_leader_statuses, cluster_json.decode_leader_statuses
    ),
}

LABELS = tuple(CODECS)


def encode_records(label: str, records: Iterable[Any]) -> list[dict[str, Any]]:
    """Encode the records of a label. Raises KeyError for unknown labels."""
    return CODECS[label].encode(records)


def decode_records(label: str, objects: Iterable[dict[str, Any]]) -> list[Any]:
    """Decode the records of a label. Raises KeyError for unknown labels."""
    return CODECS[label].decode(objects)


def load_records(number: int, label: str, text: str) -> list[Any]:
    """Decode the stored JSON text of a label in snapshot number.

    Raises:
        KeyError: If the label is unknown.
        SnapshotStorageError: If the text is not a valid document for the
            label.
    """
    codec = CODECS[label]
    try:
        return codec.decode(json.loads(text))
    except (ValueError, KeyError, TypeError) as exc:
        raise SnapshotStorageError(
            f"Corrupt '{label}' data in snapshot number: {number} ({exc!r})"
        ) from exc
