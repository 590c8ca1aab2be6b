"""Parser and snapshot codec for the JSON metrics endpoint.

The endpoint returns a list of entities:

    [{"type": "tablet", "id": "...", "attributes": {...},
      "metrics": [{"name": "rows_inserted", "value": 10},
                  {"name": "log_append_latency", "total_count": 3,
                   "total_sum": 120, "min": 10, ...},
                  {"name": "SelectStmt", "count": 2, "sum": 50, "rows": 4}]}]

The shape of each metric is decided here, once.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import asdict
from typing import Any

from snapstats.core.models import (
    INT64_MAX,
    UINT64_MAX,
    Attributes,
    CountSum,
    CountSumRows,
    Entity,
    RejectedBoolean,
    RejectedU64,
    Sample,
    Value,
)

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)

_COUNTSUM_OPTIONAL = (
    "min",
    "mean",
    "percentile_75",
    "percentile_95",
    "percentile_99",
    "percentile_99_9",
    "percentile_99_99",
    "max",
)

# Tags used for samples in persisted snapshots.
_SHAPES: dict[str, type] = {
    "value": Value,
    "countsum": CountSum,
    "countsumrows": CountSumRows,
    "rejected_u64": RejectedU64,
    "rejected_boolean": RejectedBoolean,
}
_SHAPE_TAGS = {cls: tag for tag, cls in _SHAPES.items()}


def parse_sample(metric: dict[str, Any]) -> Sample | None:
    """Decide the shape of one metric object.

    Args:
        metric: A metric object from the "metrics" list.

    Returns:
        The parsed sample, or None when the object fits no known shape.
    """
    name = metric.get("name")
    if not isinstance(name, str):
        return None
    if "value" in metric:
        value = metric["value"]
        # bool is a subclass of int; check it first.
        if isinstance(value, bool):
            return RejectedBoolean(name=name, value=value)
        if isinstance(value, int):
            if INT64_MAX < value <= UINT64_MAX:
                return RejectedU64(name=name, value=value)
            if INT64_MIN <= value <= INT64_MAX:
                return Value(name=name, value=value)
        return None
    if "total_count" in metric and "total_sum" in metric:
        try:
            optional = {
                key: (float if key == "mean" else int)(metric[key])
                for key in _COUNTSUM_OPTIONAL
                if key in metric
            }
            return CountSum(
                name=name,
                total_count=int(metric["total_count"]),
                total_sum=int(metric["total_sum"]),
                **optional,
            )
        except (TypeError, ValueError):
            return None
    if "count" in metric and "sum" in metric and "rows" in metric:
        try:
            return CountSumRows(
                name=name,
                count=int(metric["count"]),
                sum=int(metric["sum"]),
                rows=int(metric["rows"]),
            )
        except (TypeError, ValueError):
            return None
    return None


def parse_metrics(body: str, hostname_port: str, timestamp: float) -> list[Entity]:
    """Parse the body of the metrics endpoint of one server.

    Args:
        body: JSON text as returned by the server.
        hostname_port: Server the body was fetched from.
        timestamp: Fetch time, stamped on every entity.

    Returns:
        The entities with their samples. Malformed documents yield [].
    """
    if not body:
        return []
    try:
        document = json.loads(body)
    except json.JSONDecodeError as exc:
        logger.debug(
            "unable to parse metrics from %s: %s",
            hostname_port,
            exc,
            extra={"hostname_port": hostname_port, "endpoint": "metrics"},
        )
        return []
    if not isinstance(document, list):
        logger.debug("metrics from %s is not a list", hostname_port)
        return []

    entities = []
    for obj in document:
        if not isinstance(obj, dict):
            continue
        metrics = obj.get("metrics") or []
        if not isinstance(metrics, list):
            logger.debug(
                "skipping %s %s on %s: metrics is not a list",
                obj.get("type"),
                obj.get("id"),
                hostname_port,
            )
            continue
        samples: list[Sample] = []
        for metric in metrics:
            sample = parse_sample(metric) if isinstance(metric, dict) else None
            if sample is None:
                logger.debug(
                    "skipping metric %r of %s %s on %s",
                    metric.get("name") if isinstance(metric, dict) else metric,
                    obj.get("type"),
                    obj.get("id"),
                    hostname_port,
                )
                continue
            samples.append(sample)
        attributes = obj.get("attributes")
        if not isinstance(attributes, dict):
            attributes = {}
        entities.append(
            Entity(
                hostname_port=hostname_port,
                entity_type=str(obj.get("type", "")),
                entity_id=str(obj.get("id", "")),
                timestamp=timestamp,
                attributes=Attributes(
                    namespace_name=attributes.get("namespace_name"),
                    table_name=attributes.get("table_name"),
                    table_id=attributes.get("table_id"),
                ),
                samples=samples,
            )
        )
    return entities


def encode_entities(entities: Iterable[Entity]) -> list[dict[str, Any]]:
    """Encode entities to JSON-compatible objects for a snapshot."""
    encoded = []
    for entity in entities:
        encoded.append(
            {
                "hostname_port": entity.hostname_port,
                "entity_type": entity.entity_type,
                "entity_id": entity.entity_id,
                "timestamp": entity.timestamp,
                "attributes": asdict(entity.attributes),
                "samples": [
                    {"shape": _SHAPE_TAGS[type(sample)], **asdict(sample)}
                    for sample in entity.samples
                ],
            }
        )
    return encoded


def decode_entities(objects: Iterable[dict[str, Any]]) -> list[Entity]:
    """Decode entities written by encode_entities."""
    entities = []
    for obj in objects:
        samples: list[Sample] = []
        for sample in obj.get("samples", []):
            fields = dict(sample)
            cls = _SHAPES[fields.pop("shape")]
            samples.append(cls(**fields))
        entities.append(
            Entity(
                hostname_port=obj["hostname_port"],
                entity_type=obj["entity_type"],
                entity_id=obj["entity_id"],
                timestamp=obj["timestamp"],
                attributes=Attributes(**obj.get("attributes", {})),
                samples=samples,
            )
        )
    return entities
