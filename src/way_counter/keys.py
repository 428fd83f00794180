"""Map client-supplied identifiers onto the table's native key.

Everything here is pure: no I/O, no schema discovery. Callers resolve the
schema first and perform all store access themselves.
"""

import re
from typing import Any

from .models import CandidateKeys, KeyAttribute, TableSchema
from .schema import ALIAS_ID, ATTR_KEY, ATTR_WAY_ID

# Candidate roles tried after an exact attribute-name match, in priority order
PARTITION_KEY_PRIORITY = (ATTR_KEY, ATTR_WAY_ID, ALIAS_ID)
SORT_KEY_PRIORITY = (ALIAS_ID,)

# DynamoDB numbers carry at most 38 significant digits
MAX_NUMBER_DIGITS = 38
_NUMBER_LIMIT = 10**MAX_NUMBER_DIGITS

_INTEGER_RE = re.compile(rf"^[+-]?\d{{1,{MAX_NUMBER_DIGITS}}}$")


def coerce_integer(value: Any) -> int | None:
    """
    Coerce an untrusted JSON value to an int.

    Accepts ints, integral floats and decimal-integer strings of up to
    ``MAX_NUMBER_DIGITS`` digits. Booleans, larger numbers and everything
    else return None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = int(value) if value.is_integer() else None
    elif isinstance(value, str):
        text = value.strip()
        value = int(text) if _INTEGER_RE.match(text) else None
    if not isinstance(value, int) or abs(value) >= _NUMBER_LIMIT:
        return None
    return value


def coerce_key_value(value: Any, attr: KeyAttribute) -> dict[str, str] | None:
    """Convert a candidate to a typed DynamoDB value for ``attr``, or None."""
    if attr.is_number:
        number = coerce_integer(value)
        if number is None:
            return None
        return {"N": str(number)}

    if isinstance(value, str):
        return {"S": value}
    number = coerce_integer(value)
    if number is None:
        return None
    return {"S": str(number)}


def _resolve_attribute(
    attr: KeyAttribute,
    candidates: CandidateKeys,
    priority: tuple[str, ...],
    taken: Any = None,
) -> tuple[Any, dict[str, str]] | None:
    """
    Pick the first candidate for ``attr`` that coerces to its stored type.

    Fallback candidates equal to ``taken`` (the value that already satisfied
    the partition key) are skipped; an exact name match always wins.
    """
    for role in (attr.name, *priority):
        value = candidates.get(role)
        if value is None:
            continue
        if role != attr.name and taken is not None and value == taken:
            continue
        native = coerce_key_value(value, attr)
        if native is not None:
            return value, native
    return None


def build_partition_key(
    schema: TableSchema, candidates: CandidateKeys
) -> dict[str, dict[str, str]] | None:
    """Resolve only the partition key attribute."""
    resolved = _resolve_attribute(schema.partition_key, candidates, PARTITION_KEY_PRIORITY)
    if resolved is None:
        return None
    return {schema.partition_key.name: resolved[1]}


def build_key(schema: TableSchema, candidates: CandidateKeys) -> dict[str, dict[str, str]] | None:
    """
    Build a native DynamoDB key from candidate identifiers.

    Args:
        schema: Resolved table schema
        candidates: Client identifiers (key, wayId, id)

    Returns:
        A key containing exactly the schema's key attributes, correctly
        typed, or None if any attribute has no usable candidate.
    """
    partition = _resolve_attribute(schema.partition_key, candidates, PARTITION_KEY_PRIORITY)
    if partition is None:
        return None

    key = {schema.partition_key.name: partition[1]}
    if schema.sort_key is None:
        return key

    sort = _resolve_attribute(schema.sort_key, candidates, SORT_KEY_PRIORITY, taken=partition[0])
    if sort is None:
        return None

    key[schema.sort_key.name] = sort[1]
    return key


def key_from_item(schema: TableSchema, item: dict[str, Any]) -> dict[str, dict[str, str]] | None:
    """
    Rebuild a full native key from a stored item's own attribute values.

    Values are re-typed to the schema's declared types. Returns None if the
    item lacks a key attribute.
    """
    key: dict[str, dict[str, str]] = {}
    for attr in schema.key_attributes:
        cell = item.get(attr.name)
        if not cell:
            return None
        raw = cell.get("S", cell.get("N"))
        native = coerce_key_value(raw, attr)
        if native is None:
            return None
        key[attr.name] = native
    return key
