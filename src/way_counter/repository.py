"""DynamoDB repository for way counters."""

from collections.abc import AsyncIterator
from typing import Any

import aioboto3  # type: ignore[import-untyped]
from botocore.exceptions import ClientError

from . import schema
from .exceptions import BoundViolation, CounterExistsError
from .models import Bound, TableSchema, WayCounter


class Repository:
    """
    Async DynamoDB repository for the counter table.

    Knows nothing about the table's key layout: every operation takes a
    native key built by the caller from the discovered schema.
    """

    def __init__(
        self,
        table_name: str = schema.DEFAULT_TABLE_NAME,
        region: str | None = None,
        endpoint_url: str | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
    ) -> None:
        self.table_name = table_name
        self.region = region
        self.endpoint_url = endpoint_url
        self._aws_access_key_id = aws_access_key_id
        self._aws_secret_access_key = aws_secret_access_key
        self._session: aioboto3.Session | None = None
        self._client: Any = None

    async def _get_client(self) -> Any:
        """Get or create the DynamoDB client."""
        if self._client is None:
            self._session = aioboto3.Session(
                aws_access_key_id=self._aws_access_key_id,
                aws_secret_access_key=self._aws_secret_access_key,
            )
            self._client = await self._session.client(
                "dynamodb",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
            ).__aenter__()
        return self._client

    async def close(self) -> None:
        """Close the DynamoDB client."""
        if self._client is not None:
            await self._client.__aexit__(None, None, None)
            self._client = None
            self._session = None

    async def __aenter__(self) -> "Repository":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Table operations
    # -------------------------------------------------------------------------

    async def create_table(
        self,
        partition_key: tuple[str, str] = (schema.ATTR_WAY_ID, schema.TYPE_NUMBER),
        sort_key: tuple[str, str] | None = None,
    ) -> None:
        """Create the DynamoDB table if it doesn't exist."""
        client = await self._get_client()
        definition = schema.get_table_definition(self.table_name, partition_key, sort_key)

        try:
            await client.create_table(**definition)
            # Wait for table to be active
            waiter = client.get_waiter("table_exists")
            await waiter.wait(TableName=self.table_name)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceInUseException":
                raise

    async def delete_table(self) -> None:
        """Delete the DynamoDB table."""
        client = await self._get_client()
        try:
            await client.delete_table(TableName=self.table_name)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                raise

    async def describe_key_schema(self) -> TableSchema:
        """
        Discover the table's primary-key schema.

        Raises:
            ClientError: If the table doesn't exist or DynamoDB rejects the call
            ValueError: If the key uses an unsupported attribute type
        """
        client = await self._get_client()
        response = await client.describe_table(TableName=self.table_name)
        return TableSchema.from_description(response["Table"])

    # -------------------------------------------------------------------------
    # Scans
    # -------------------------------------------------------------------------

    async def scan(
        self,
        attributes: list[str] | None = None,
        filter_expression: str | None = None,
        expression_names: dict[str, str] | None = None,
        expression_values: dict[str, Any] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Iterate over every item in the table, following LastEvaluatedKey.

        Args:
            attributes: Attribute names to project (all attributes if None)
            filter_expression: Optional FilterExpression
            expression_names: Placeholder names used by filter_expression
            expression_values: Placeholder values used by filter_expression
        """
        client = await self._get_client()

        scan_args: dict[str, Any] = {"TableName": self.table_name}
        names = dict(expression_names or {})
        if attributes:
            # Placeholders for everything: "key" and "value" are reserved words
            placeholders = []
            for i, attribute in enumerate(dict.fromkeys(attributes)):
                placeholder = f"#p{i}"
                names[placeholder] = attribute
                placeholders.append(placeholder)
            scan_args["ProjectionExpression"] = ", ".join(placeholders)
        if filter_expression:
            scan_args["FilterExpression"] = filter_expression
        if names:
            scan_args["ExpressionAttributeNames"] = names
        if expression_values:
            scan_args["ExpressionAttributeValues"] = expression_values

        paginator = client.get_paginator("scan")
        async for page in paginator.paginate(**scan_args):
            for item in page.get("Items", []):
                yield item

    async def find_by_attribute(self, name: str, value: dict[str, Any]) -> dict[str, Any] | None:
        """Return the first item whose attribute ``name`` equals ``value``."""
        async for item in self.scan(
            filter_expression="#k = :kv",
            expression_names={"#k": name},
            expression_values={":kv": value},
        ):
            return item
        return None

    # -------------------------------------------------------------------------
    # Counter writes
    # -------------------------------------------------------------------------

    def build_value_update(
        self,
        key: dict[str, Any],
        delta: int,
        max_value: int,
    ) -> dict[str, Any]:
        """
        Build the conditional UpdateItem arguments for a bounded delta.

        The new value is ``if_not_exists(value, 0) + delta``. The guard keeps
        the result inside [0, max_value]: increments need the value absent
        or at most ``max_value - delta``; decrements need it present and at
        least ``-delta``.
        """
        values: dict[str, Any] = {
            ":d": {"N": str(delta)},
            ":zero": {"N": "0"},
        }
        if delta > 0:
            values[":limit"] = {"N": str(max_value - delta)}
            if delta <= max_value:
                condition = "attribute_not_exists(#v) OR #v <= :limit"
            else:
                condition = "#v <= :limit"
        else:
            values[":limit"] = {"N": str(-delta)}
            condition = "attribute_exists(#v) AND #v >= :limit"

        return {
            "TableName": self.table_name,
            "Key": key,
            "UpdateExpression": "SET #v = if_not_exists(#v, :zero) + :d",
            "ConditionExpression": condition,
            "ExpressionAttributeNames": {"#v": schema.ATTR_VALUE},
            "ExpressionAttributeValues": values,
            "ReturnValues": "ALL_NEW",
            "ReturnValuesOnConditionCheckFailure": "ALL_OLD",
        }

    async def update_value(
        self,
        key: dict[str, Any],
        delta: int,
        max_value: int,
    ) -> dict[str, Any]:
        """
        Atomically apply ``delta`` to the counter at ``key``.

        Returns:
            The item's attributes after the update

        Raises:
            BoundViolation: If the guard rejected the write
            ClientError: For any other DynamoDB failure
        """
        client = await self._get_client()
        try:
            response = await client.update_item(**self.build_value_update(key, delta, max_value))
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                old = e.response.get("Item") or {}
                current = old.get(schema.ATTR_VALUE, {}).get("N")
                raise BoundViolation(
                    bound=Bound.CEILING if delta > 0 else Bound.FLOOR,
                    delta=delta,
                    max_value=max_value,
                    key=key,
                    current_value=int(current) if current is not None else None,
                ) from e
            raise
        return dict(response.get("Attributes", {}))

    async def put_if_absent(self, item: dict[str, Any], partition_key: str) -> None:
        """
        Create an item unless one already exists at its key.

        Raises:
            CounterExistsError: If an item with the same key exists
            ClientError: For any other DynamoDB failure
        """
        client = await self._get_client()
        try:
            await client.put_item(
                TableName=self.table_name,
                Item=item,
                ConditionExpression="attribute_not_exists(#pk)",
                ExpressionAttributeNames={"#pk": partition_key},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise CounterExistsError(item.get(partition_key, {})) from e
            raise

    # -------------------------------------------------------------------------
    # Serialization helpers
    # -------------------------------------------------------------------------

    def _deserialize_int(self, value: dict[str, Any] | None) -> int | None:
        """Deserialize an N (or numeric S) value through int, never float."""
        if not value:
            return None
        raw = value.get("N", value.get("S"))
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    def item_way_id(self, item: dict[str, Any], partition_key: str | None = None) -> int | None:
        """
        Numeric way id of a stored item.

        Tried in order: ``wayId``, ``id``, ``key`` and then ``partition_key``
        when given. Numeric values are used as-is; strings may be digits or
        a ``way-<id>`` key.
        """
        names = [schema.ATTR_WAY_ID, schema.ALIAS_ID, schema.ATTR_KEY]
        if partition_key is not None and partition_key not in names:
            names.append(partition_key)

        for name in names:
            cell = item.get(name) or {}
            way_id = self._deserialize_int(cell)
            if way_id is None and cell.get("S"):
                way_id = schema.parse_way_key(cell["S"])
            if way_id is not None:
                return way_id
        return None

    def deserialize_counter(self, item: dict[str, Any]) -> WayCounter:
        """Deserialize a DynamoDB item to the normalized WayCounter shape."""
        key_cell = item.get(schema.ATTR_KEY, {})
        key = key_cell.get("S", key_cell.get("N"))

        way_id = self._deserialize_int(item.get(schema.ATTR_WAY_ID))
        if way_id is None:
            way_id = self._deserialize_int(item.get(schema.ALIAS_ID))

        return WayCounter(
            key=key,
            id=way_id if way_id is not None else 0,
            label=item.get(schema.ATTR_LABEL, {}).get("S", ""),
            value=self._deserialize_int(item.get(schema.ATTR_VALUE)) or 0,
        )
