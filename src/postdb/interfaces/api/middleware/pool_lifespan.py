"""Pool lifespan middleware - opens pool on startup, closes on shutdown."""

import logging
from typing import Any

from psycopg_pool import AsyncConnectionPool

from postdb.infrastructure.persistence.postgres.connection import open_pool

logger = logging.getLogger(__name__)


class PoolLifespanMiddleware:
    """Opens the connection pool on ASGI startup and closes it on shutdown.

    Startup fails when PostgreSQL is unreachable.
    """

    def __init__(self, pool: AsyncConnectionPool, timeout: float = 10.0) -> None:
        self._pool = pool
        self._timeout = timeout

    async def process_startup(
        self, scope: dict[str, Any], event: dict[str, Any]
    ) -> None:
        """Open pool when ASGI server starts."""
        await open_pool(self._pool, timeout=self._timeout)
        logger.info("Connection pool open")

    async def process_shutdown(
        self, scope: dict[str, Any], event: dict[str, Any]
    ) -> None:
        """Close pool when ASGI server shuts down."""
        await self._pool.close()
        logger.info("Connection pool closed")
