"""Process-wide cache for the discovered table schema.

The key schema is resolved once with DescribeTable and then treated as
immutable. A schema change on the table requires a process restart.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from .models import TableSchema


@dataclass
class SchemaCache:
    """
    Single-assignment, async-safe holder for a TableSchema.

    Concurrent first callers are serialized by an asyncio.Lock, so the
    fetch function runs once per successful resolution. Failed fetches
    are not cached; the next caller tries again.
    """

    _schema: TableSchema | None = field(init=False, default=None)
    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)

    async def get(self, fetch_fn: Callable[[], Awaitable[TableSchema]]) -> TableSchema:
        """
        Get the schema, fetching it on first use.

        Args:
            fetch_fn: Async function that discovers the schema

        Returns:
            The cached TableSchema
        """
        schema = self._schema
        if schema is not None:
            return schema

        async with self._lock:
            # Another caller may have resolved while we waited
            if self._schema is not None:
                return self._schema

            schema = await fetch_fn()
            self._schema = schema
            return schema
