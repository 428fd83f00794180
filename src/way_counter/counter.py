"""Bounded way counters over a schema-discovered DynamoDB table."""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from . import schema
from .exceptions import (
    BoundViolation,
    CounterExistsError,
    InvalidDelta,
    KeyResolutionFailed,
    SchemaUnavailable,
    StoreTransientFailure,
    WayCounterError,
)
from .keys import build_key, build_partition_key, coerce_integer, key_from_item
from .models import CandidateKeys, SeedResult, TableSchema, WayCounter
from .repository import Repository
from .schema_cache import SchemaCache

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_DELTAS = frozenset({-1, 1})

_STORE_ERRORS = (ClientError, BotoCoreError)


class WayCounterService:
    """
    Async way-counter service backed by DynamoDB.

    Discovers the table's key schema on first use, maps loosely specified
    client identifiers onto it, and applies bounded deltas with a single
    conditional UpdateItem so that ``0 <= value <= max_value`` always holds.
    """

    def __init__(
        self,
        table_name: str = schema.DEFAULT_TABLE_NAME,
        region: str | None = None,
        endpoint_url: str | None = None,
        max_value: int = schema.DEFAULT_MAX_VALUE,
        allowed_deltas: Iterable[int] = DEFAULT_ALLOWED_DELTAS,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        repository: Repository | None = None,
    ) -> None:
        if max_value < 0:
            raise ValueError("max_value must be >= 0")
        self.table_name = table_name
        self.max_value = max_value
        self.allowed_deltas = frozenset(allowed_deltas)
        self._repository = repository or Repository(
            table_name=table_name,
            region=region,
            endpoint_url=endpoint_url,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
        )
        self._schema_cache = SchemaCache()

    @property
    def repository(self) -> Repository:
        return self._repository

    async def close(self) -> None:
        """Close the underlying connections."""
        await self._repository.close()

    async def __aenter__(self) -> "WayCounterService":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    async def resolve_schema(self) -> TableSchema:
        """
        Get the table key schema, discovering it on first call.

        Raises:
            SchemaUnavailable: If DynamoDB is unreachable or the table is missing
        """
        return await self._schema_cache.get(self._describe_schema)

    async def _describe_schema(self) -> TableSchema:
        try:
            table_schema = await self._repository.describe_key_schema()
        except (*_STORE_ERRORS, ValueError) as e:
            raise SchemaUnavailable(
                "Could not describe table key schema", cause=e, table_name=self.table_name
            ) from e

        sort_key = table_schema.sort_key
        logger.info(
            "Resolved key schema for %s: partition=%s:%s sort=%s",
            self.table_name,
            table_schema.partition_key.name,
            table_schema.partition_key.type,
            f"{sort_key.name}:{sort_key.type}" if sort_key else "-",
        )
        return table_schema

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def validate_delta(self, delta: Any) -> int:
        """
        Coerce an untrusted delta and check it against the allowed set.

        Raises:
            InvalidDelta: If delta isn't an integer or isn't allowed
        """
        value = coerce_integer(delta)
        if value is None:
            raise InvalidDelta(delta)
        if value not in self.allowed_deltas:
            raise InvalidDelta(delta, self.allowed_deltas)
        return value

    async def apply_delta(self, candidates: CandidateKeys, delta: Any) -> WayCounter:
        """
        Atomically apply a bounded delta to one counter.

        Args:
            candidates: Client identifiers (key, wayId, id)
            delta: Requested change, validated against allowed_deltas

        Returns:
            The counter after the update

        Raises:
            InvalidDelta: If delta is rejected (before any store call)
            SchemaUnavailable: If the key schema can't be discovered
            KeyResolutionFailed: If no identifier fits the key schema
            BoundViolation: If the counter is at its ceiling or floor
            StoreTransientFailure: For any other DynamoDB failure
        """
        step = self.validate_delta(delta)
        table_schema = await self.resolve_schema()

        key = build_key(table_schema, candidates)
        if key is None:
            error = self._resolution_error(table_schema, candidates)
            if self._partition_only(table_schema, candidates):
                return await self._recover(table_schema, candidates, step, error)
            raise error

        try:
            attributes = await self._repository.update_value(key, step, self.max_value)
        except BoundViolation as e:
            logger.debug("Rejected delta %+d at %s bound for %s", step, e.bound.value, key)
            raise
        except _STORE_ERRORS as e:
            error = StoreTransientFailure(
                "Failed to update value", cause=e, table_name=self.table_name
            )
            if self._sort_key_implied(table_schema, candidates):
                return await self._recover(table_schema, candidates, step, error)
            raise error from e

        return self._repository.deserialize_counter(attributes)

    def _resolution_error(
        self, table_schema: TableSchema, candidates: CandidateKeys
    ) -> KeyResolutionFailed:
        if build_partition_key(table_schema, candidates) is None:
            return KeyResolutionFailed(missing=table_schema.key_names)
        assert table_schema.sort_key is not None
        return KeyResolutionFailed(missing=[table_schema.sort_key.name])

    def _partition_only(self, table_schema: TableSchema, candidates: CandidateKeys) -> bool:
        """Whether the client identified the partition but not the sort key, by string key."""
        return (
            table_schema.sort_key is not None
            and candidates.string_key is not None
            and build_partition_key(table_schema, candidates) is not None
        )

    def _sort_key_implied(self, table_schema: TableSchema, candidates: CandidateKeys) -> bool:
        """Whether the sort key value came from an alias rather than a field of its name."""
        return (
            table_schema.sort_key is not None
            and candidates.string_key is not None
            and table_schema.sort_key.name not in candidates.supplied
        )

    async def _recover(
        self,
        table_schema: TableSchema,
        candidates: CandidateKeys,
        step: int,
        original: WayCounterError,
    ) -> WayCounter:
        """
        Find the item by its logical string key and retry the update once.

        Raises ``original`` if no item matches or the retry fails for any
        reason other than a bound violation.
        """
        key_value = candidates.string_key
        try:
            item = await self._repository.find_by_attribute(schema.ATTR_KEY, {"S": key_value})
        except _STORE_ERRORS as e:
            logger.warning("Recovery lookup for key=%s failed: %s", key_value, e)
            raise original from e

        full_key = key_from_item(table_schema, item) if item is not None else None
        if full_key is None:
            logger.info("Recovery found no item for key=%s", key_value)
            raise original

        logger.info("Retrying delta %+d for key=%s with recovered key %s", step, key_value, full_key)
        try:
            attributes = await self._repository.update_value(full_key, step, self.max_value)
        except BoundViolation:
            raise
        except _STORE_ERRORS as e:
            logger.warning("Retry with recovered key %s failed: %s", full_key, e)
            raise original from e

        return self._repository.deserialize_counter(attributes)

    # -------------------------------------------------------------------------
    # Read projection
    # -------------------------------------------------------------------------

    async def list_counters(self) -> list[WayCounter]:
        """
        List every counter in its normalized shape.

        Raises:
            StoreTransientFailure: If the scan fails
        """
        try:
            return [
                self._repository.deserialize_counter(item)
                async for item in self._repository.scan()
            ]
        except _STORE_ERRORS as e:
            raise StoreTransientFailure(
                "Failed to load config", cause=e, table_name=self.table_name
            ) from e

    # -------------------------------------------------------------------------
    # Seeding
    # -------------------------------------------------------------------------

    def build_seed_item(
        self,
        table_schema: TableSchema,
        way_id: int,
        label: str | None = None,
    ) -> dict[str, Any] | None:
        """
        Build a full item for a new counter, or None if its key can't be built.

        Both logical aliases (wayId, key) are always written, whichever of
        them is the real primary key; the native key overlays them.
        """
        key_value = schema.way_key(way_id)
        native_key = build_key(
            table_schema, CandidateKeys.from_request(key=key_value, way_id=way_id)
        )
        if native_key is None:
            return None

        item: dict[str, Any] = {
            schema.ATTR_WAY_ID: {"N": str(way_id)},
            schema.ATTR_KEY: {"S": key_value},
            schema.ATTR_LABEL: {"S": label or schema.default_label(way_id)},
            schema.ATTR_VALUE: {"N": "0"},
        }
        item.update(native_key)
        return item

    async def existing_way_ids(self, table_schema: TableSchema) -> set[int]:
        """Collect stored way ids, projecting only the attributes that identify a way."""
        partition_key = table_schema.partition_key.name
        attributes = [schema.ATTR_WAY_ID, schema.ALIAS_ID, schema.ATTR_KEY, partition_key]
        existing: set[int] = set()
        try:
            async for item in self._repository.scan(attributes=attributes):
                way_id = self._repository.item_way_id(item, partition_key)
                if way_id is not None:
                    existing.add(way_id)
        except _STORE_ERRORS as e:
            raise StoreTransientFailure(
                "Failed to scan existing counters", cause=e, table_name=self.table_name
            ) from e
        return existing

    async def seed_missing(self, entities: Iterable[tuple[int, str | None]]) -> SeedResult:
        """
        Create counters for reference ways that aren't stored yet.

        Each write is create-only, so concurrent seeders never overwrite
        each other or an existing value. Per-item failures are logged and
        collected; the batch always runs to the end.

        Args:
            entities: (way_id, label) pairs from the reference dataset

        Returns:
            SeedResult with created/skipped counts and error messages

        Raises:
            SchemaUnavailable: If the key schema can't be discovered
            StoreTransientFailure: If existing counters can't be scanned
        """
        result = SeedResult()
        table_schema = await self.resolve_schema()
        existing = await self.existing_way_ids(table_schema)

        missing: dict[int, str | None] = {}
        for way_id, label in entities:
            if way_id not in existing and way_id not in missing:
                missing[way_id] = label

        logger.info(
            "Seeding %d missing ways into %s (%d already present)",
            len(missing),
            self.table_name,
            len(existing),
        )

        for way_id, label in missing.items():
            item = self.build_seed_item(table_schema, way_id, label)
            if item is None:
                logger.warning("Cannot build a key for way %d with schema %s", way_id, table_schema)
                result.errors.append(f"way {way_id}: no key for table schema")
                continue
            try:
                await self._repository.put_if_absent(item, table_schema.partition_key.name)
            except CounterExistsError:
                logger.info("Way %d already exists, skipping", way_id)
                result.skipped += 1
            except Exception as e:
                logger.warning("Failed to seed way %d: %s", way_id, e)
                result.errors.append(f"way {way_id}: {e}")
            else:
                result.created += 1

        return result

    def start_seeding(
        self, entities: Iterable[tuple[int, str | None]]
    ) -> "asyncio.Task[SeedResult | None]":
        """
        Run seed_missing as a detached task.

        The task never raises: a failed run is logged and yields None, so
        request serving is unaffected whatever happens.
        """
        return asyncio.create_task(self._seed_detached(list(entities)), name="way-counter-seed")

    async def _seed_detached(
        self, entities: list[tuple[int, str | None]]
    ) -> SeedResult | None:
        try:
            result = await self.seed_missing(entities)
        except Exception:
            logger.error("Seeding %s failed", self.table_name, exc_info=True)
            return None

        logger.info(
            "Seeding %s finished: created=%d skipped=%d errors=%d",
            self.table_name,
            result.created,
            result.skipped,
            len(result.errors),
        )
        return result
