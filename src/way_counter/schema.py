"""DynamoDB attribute names, type codes and table definitions."""

import re
from typing import Any

DEFAULT_TABLE_NAME = "WayConfig"
DEFAULT_MAX_VALUE = 10

# Logical attributes carried by every counter item, whatever the key schema
ATTR_WAY_ID = "wayId"
ATTR_KEY = "key"
ATTR_LABEL = "label"
ATTR_VALUE = "value"

# Request alias for wayId
ALIAS_ID = "id"

# DynamoDB attribute type codes supported for key attributes
TYPE_STRING = "S"
TYPE_NUMBER = "N"

KEY_TYPE_HASH = "HASH"
KEY_TYPE_RANGE = "RANGE"

WAY_KEY_PREFIX = "way-"
_WAY_KEY_RE = re.compile(r"^way-(-?\d+)$")


def way_key(way_id: int) -> str:
    """Build the conventional logical key for a way."""
    return f"{WAY_KEY_PREFIX}{way_id}"


def parse_way_key(key: str) -> int | None:
    """Parse the way id out of a ``way-<id>`` key, or None if it doesn't match."""
    match = _WAY_KEY_RE.match(key)
    if match is None:
        return None
    return int(match.group(1))


def default_label(way_id: int) -> str:
    """Label used when the reference dataset has no name for a way."""
    return f"Way {way_id}"


def get_table_definition(
    table_name: str,
    partition_key: tuple[str, str] = (ATTR_WAY_ID, TYPE_NUMBER),
    sort_key: tuple[str, str] | None = None,
) -> dict[str, Any]:
    """
    Get a DynamoDB table definition for CreateTable.

    The service discovers whatever schema the table has; this helper only
    exists to provision local and test tables.

    Args:
        table_name: Table to create
        partition_key: (attribute name, type code) of the HASH key
        sort_key: Optional (attribute name, type code) of the RANGE key

    Returns a dictionary suitable for create_table().
    """
    attribute_definitions = [
        {"AttributeName": partition_key[0], "AttributeType": partition_key[1]},
    ]
    key_schema = [{"AttributeName": partition_key[0], "KeyType": KEY_TYPE_HASH}]
    if sort_key is not None:
        attribute_definitions.append(
            {"AttributeName": sort_key[0], "AttributeType": sort_key[1]},
        )
        key_schema.append({"AttributeName": sort_key[0], "KeyType": KEY_TYPE_RANGE})

    return {
        "TableName": table_name,
        "BillingMode": "PAY_PER_REQUEST",
        "AttributeDefinitions": attribute_definitions,
        "KeySchema": key_schema,
    }
