"""PostgreSQL async connection pool."""

from psycopg_pool import AsyncConnectionPool


def create_pool(conninfo: str, min_size: int = 2, max_size: int = 10) -> AsyncConnectionPool:
    """Create async connection pool.

    Pool is created with open=False. Caller must call open_pool() before use
    (e.g. via PoolLifespanMiddleware in ASGI lifespan or the replicator CLI).
    """
    return AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        open=False,
    )


async def open_pool(pool: AsyncConnectionPool, timeout: float = 10.0) -> None:
    """Open the pool and wait until PostgreSQL is reachable.

    Raises psycopg_pool.PoolTimeout when no connection could be made; callers
    treat that as fatal at startup.
    """
    await pool.open(wait=True, timeout=timeout)
    async with pool.connection() as conn:
        await conn.execute("SELECT 1")
