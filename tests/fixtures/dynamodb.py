"""Direct DynamoDB helpers that bypass the service under test."""

from typing import Any

from way_counter import WayCounterService


async def put_raw_item(service: WayCounterService, item: dict[str, Any]) -> None:
    """Write an item directly."""
    client = await service.repository._get_client()
    await client.put_item(TableName=service.table_name, Item=item)


async def get_raw_item(service: WayCounterService, key: dict[str, Any]) -> dict[str, Any] | None:
    """Read an item directly."""
    client = await service.repository._get_client()
    response = await client.get_item(TableName=service.table_name, Key=key)
    return response.get("Item")


def counter_item(
    way_id: int,
    value: int | None = None,
    label: str | None = None,
    **extra: dict[str, str],
) -> dict[str, Any]:
    """Build a counter item with both logical aliases."""
    item: dict[str, Any] = {
        "wayId": {"N": str(way_id)},
        "key": {"S": f"way-{way_id}"},
    }
    if value is not None:
        item["value"] = {"N": str(value)}
    if label is not None:
        item["label"] = {"S": label}
    item.update(extra)
    return item
