"""Unit tests for the schema cache."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from way_counter.models import KeyAttribute, TableSchema
from way_counter.schema_cache import SchemaCache

SCHEMA = TableSchema(partition_key=KeyAttribute("wayId", "N"))


class TestSchemaCache:
    """Tests for SchemaCache."""

    async def test_first_get_fetches(self):
        cache = SchemaCache()
        fetch_fn = AsyncMock(return_value=SCHEMA)

        assert await cache.get(fetch_fn) is SCHEMA
        fetch_fn.assert_awaited_once()

    async def test_second_get_is_a_hit(self):
        cache = SchemaCache()
        fetch_fn = AsyncMock(return_value=SCHEMA)

        await cache.get(fetch_fn)
        assert await cache.get(fetch_fn) is SCHEMA

        fetch_fn.assert_awaited_once()

    async def test_concurrent_first_callers_fetch_once(self):
        cache = SchemaCache()
        calls = 0

        async def slow_fetch() -> TableSchema:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return SCHEMA

        results = await asyncio.gather(*(cache.get(slow_fetch) for _ in range(5)))

        assert calls == 1
        assert all(result is SCHEMA for result in results)

    async def test_failure_is_not_cached(self):
        cache = SchemaCache()
        fetch_fn = AsyncMock(side_effect=[RuntimeError("down"), SCHEMA])

        with pytest.raises(RuntimeError):
            await cache.get(fetch_fn)

        assert await cache.get(fetch_fn) is SCHEMA
        assert fetch_fn.await_count == 2
