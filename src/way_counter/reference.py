"""Reference dataset of ways used to seed missing counters.

Accepted JSON shapes:

- a GeoJSON FeatureCollection (e.g. an OSM export), ids from
  ``properties.wayId``, ``properties.@id`` (``"way/123"``), ``properties.id``
  or the feature ``id``; names from ``properties.label`` or ``properties.name``
- an Overpass response (``{"elements": [{"type": "way", "id": ..., "tags": {...}}]}``)
- a plain list of ``{"wayId": ..., "label": ...}`` objects

An unreadable or malformed file yields no ways.
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from .keys import coerce_integer

logger = logging.getLogger(__name__)

_WAY_PREFIX = "way/"


def parse_way_id(raw: Any) -> int | None:
    """Parse a non-negative way id from an int, a digit string or ``way/<id>``."""
    if isinstance(raw, str) and raw.startswith(_WAY_PREFIX):
        raw = raw[len(_WAY_PREFIX) :]
    way_id = coerce_integer(raw)
    if way_id is None or way_id < 0:
        return None
    return way_id


def _first_string(*values: Any) -> str | None:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_record(record: Any) -> tuple[int, str | None] | None:
    """Extract (way_id, label) from one feature, element or plain record."""
    if not isinstance(record, dict):
        return None
    if record.get("type") not in (None, "way", "Feature"):
        return None

    properties = _as_dict(record.get("properties"))
    tags = _as_dict(record.get("tags")) or _as_dict(properties.get("tags"))

    for raw in (
        record.get("wayId"),
        properties.get("wayId"),
        properties.get("@id"),
        properties.get("id"),
        record.get("id"),
    ):
        way_id = parse_way_id(raw)
        if way_id is not None:
            break
    else:
        return None

    label = _first_string(
        record.get("label"),
        properties.get("label"),
        properties.get("name"),
        tags.get("name"),
        record.get("name"),
    )
    return way_id, label


def extract_ways(data: Any) -> Iterator[tuple[int, str | None]]:
    """Yield (way_id, label) pairs from a decoded reference document."""
    records: Any
    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        records = data.get("features")
    elif isinstance(data, dict) and "elements" in data:
        records = data.get("elements")
    else:
        records = data

    if not isinstance(records, list):
        logger.warning("Reference data has no list of ways, ignoring it")
        return

    for record in records:
        way = parse_record(record)
        if way is None:
            logger.debug("Skipping reference record without a way id: %r", record)
            continue
        yield way


def load_reference_ways(path: str | Path) -> list[tuple[int, str | None]]:
    """
    Load (way_id, label) pairs from a JSON file.

    Returns an empty list if the file can't be read or decoded.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not read reference data from %s: %s", path, e)
        return []

    ways = list(extract_ways(data))
    logger.info("Loaded %d reference ways from %s", len(ways), path)
    return ways
