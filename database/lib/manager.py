"""Base class for managers that read and write through the connection pool."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg


class PoolManager:
    """Holds a pool and hands out connections.

    Every storage method takes an optional ``conn``. When one is given the
    call runs on it, so several managers can share a single database
    transaction; otherwise a connection is acquired from the pool.
    """

    def __init__(self, pool=None):
        """Initialize the manager.

        Args:
            pool: Optional database pool. If not provided, will get from database module.
        """
        self.pool = pool

    async def ensure_pool(self):
        """Ensure we have a database pool."""
        if not self.pool:
            # Import here to avoid circular imports
            from database import get_pool
            self.pool = await get_pool()

    @asynccontextmanager
    async def connection(
        self,
        conn: Optional[asyncpg.Connection] = None
    ) -> AsyncIterator[asyncpg.Connection]:
        """Yield ``conn`` if given, else a pooled connection."""
        if conn is not None:
            yield conn
            return

        await self.ensure_pool()
        async with self.pool.acquire() as pooled:
            yield pooled
