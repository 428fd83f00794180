"""Core models for way-counter."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .schema import (
    ALIAS_ID,
    ATTR_KEY,
    ATTR_WAY_ID,
    KEY_TYPE_HASH,
    KEY_TYPE_RANGE,
    TYPE_NUMBER,
    TYPE_STRING,
)


@dataclass(frozen=True)
class KeyAttribute:
    """
    One attribute of the table's primary key.

    Attributes:
        name: DynamoDB attribute name
        type: Stored type code ("S" or "N")
    """

    name: str
    type: str

    def __post_init__(self) -> None:
        if self.type not in (TYPE_STRING, TYPE_NUMBER):
            raise ValueError(
                f"Unsupported key attribute type {self.type!r} for {self.name!r}"
            )

    @property
    def is_number(self) -> bool:
        return self.type == TYPE_NUMBER


@dataclass(frozen=True)
class TableSchema:
    """
    Primary-key shape of the counter table, as discovered from DescribeTable.

    Immutable for the process lifetime once resolved.

    Attributes:
        partition_key: The HASH key attribute
        sort_key: The RANGE key attribute, if the table has one
    """

    partition_key: KeyAttribute
    sort_key: KeyAttribute | None = None

    @property
    def key_attributes(self) -> list[KeyAttribute]:
        """Key attributes in HASH, RANGE order."""
        if self.sort_key is None:
            return [self.partition_key]
        return [self.partition_key, self.sort_key]

    @property
    def key_names(self) -> list[str]:
        return [attr.name for attr in self.key_attributes]

    @classmethod
    def from_description(cls, table: dict[str, Any]) -> "TableSchema":
        """
        Build a schema from the ``Table`` section of a DescribeTable response.

        Raises:
            ValueError: If the table has no HASH key or uses an unsupported key type
        """
        types = {
            definition["AttributeName"]: definition["AttributeType"]
            for definition in table.get("AttributeDefinitions", [])
        }
        names: dict[str, str] = {}
        for element in table.get("KeySchema", []):
            names[element["KeyType"]] = element["AttributeName"]

        hash_name = names.get(KEY_TYPE_HASH)
        if hash_name is None:
            raise ValueError("Table description has no HASH key")

        range_name = names.get(KEY_TYPE_RANGE)
        return cls(
            partition_key=KeyAttribute(hash_name, types.get(hash_name, "")),
            sort_key=KeyAttribute(range_name, types.get(range_name, ""))
            if range_name
            else None,
        )


def _pick(*values: Any) -> Any:
    """Return the first value that is not None or an empty string."""
    for value in values:
        if value is not None and value != "":
            return value
    return None


@dataclass(frozen=True)
class CandidateKeys:
    """
    Client-supplied identifiers, aliased under the names a key may use.

    ``way_id`` and ``id`` alias each other: each falls back to the other
    when only one was sent.
    """

    way_id: Any = None
    id: Any = None
    key: Any = None
    supplied: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_request(
        cls,
        key: Any = None,
        way_id: Any = None,
        id: Any = None,  # noqa: A002
    ) -> "CandidateKeys":
        """Build a bundle from raw request fields, resolving the aliases."""
        raw = {ATTR_KEY: key, ATTR_WAY_ID: way_id, ALIAS_ID: id}
        return cls(
            way_id=_pick(way_id, id),
            id=_pick(id, way_id),
            key=_pick(key),
            supplied=frozenset(name for name, value in raw.items() if _pick(value) is not None),
        )

    def get(self, name: str) -> Any:
        """Candidate value under a logical or attribute name (None if absent)."""
        if name == ATTR_WAY_ID:
            return self.way_id
        if name == ALIAS_ID:
            return self.id
        if name == ATTR_KEY:
            return self.key
        return None

    @property
    def string_key(self) -> str | None:
        """The ``key`` candidate if it is a string, else None."""
        return self.key if isinstance(self.key, str) else None


class Bound(Enum):
    """Which end of the counter range rejected an update."""

    CEILING = "ceiling"
    FLOOR = "floor"


@dataclass
class WayCounter:
    """
    A way counter in its normalized external shape.

    Attributes:
        key: Logical string identifier (e.g., "way-7"), None if the item has none
        id: Logical numeric identifier (wayId)
        label: Human-readable name
        value: Current counter value
    """

    key: str | None
    id: int
    label: str = ""
    value: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the GET /config response."""
        return {"key": self.key, "id": self.id, "label": self.label, "value": self.value}

    def to_update_dict(self) -> dict[str, Any]:
        """Serialize for the POST /value response."""
        return {"key": self.key, "id": self.id, "value": self.value}


@dataclass
class SeedResult:
    """Result of a seeding run."""

    created: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class Location:
    """A user's last reported location."""

    id: str | int
    latitude: float
    longitude: float
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Location":
        return cls(
            id=data["id"],
            latitude=data["latitude"],
            longitude=data["longitude"],
            timestamp=data.get("timestamp", ""),
        )
