"""Database connection pool management.

Wraps the asyncpg pool so that a query which hits a connection dropped
by the server (idle reaper, Postgres restart) is re-run on a fresh
connection instead of failing the request.
"""

import asyncio
import logging
from typing import Any

import asyncpg

from sessionauth.config import settings

logger = logging.getLogger(__name__)

# Exceptions that mean "the connection died -- retry with a fresh one"
_RETRY_EXCEPTIONS = (
    asyncpg.ConnectionDoesNotExistError,
    asyncpg.InterfaceError,
    ConnectionResetError,
)

_MAX_RETRIES = 2


class _ResilientPool:
    """Proxy for :class:`asyncpg.Pool` whose ``fetchrow``/``fetchval`` reconnect once dead."""

    __slots__ = ("_pool",)

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def fetchrow(self, query: str, *args: Any, **kw: Any):
        return await self._retry(self._pool.fetchrow, query, *args, **kw)

    async def fetchval(self, query: str, *args: Any, **kw: Any):
        return await self._retry(self._pool.fetchval, query, *args, **kw)

    @staticmethod
    async def _retry(func, *args: Any, **kw: Any):
        for attempt in range(_MAX_RETRIES + 1):
            try:
                return await func(*args, **kw)
            except _RETRY_EXCEPTIONS as exc:
                if attempt == _MAX_RETRIES:
                    raise
                wait = 0.25 * (2 ** attempt)
                logger.warning(
                    "DB connection lost (attempt %d/%d): %s -- retrying in %.2fs",
                    attempt + 1, _MAX_RETRIES + 1, exc, wait,
                )
                await asyncio.sleep(wait)


_pool: asyncpg.Pool | None = None
_wrapper: _ResilientPool | None = None


async def get_pool() -> _ResilientPool:
    """Get or create the database connection pool."""
    global _pool, _wrapper
    if _pool is None:
        _pool = await asyncio.wait_for(
            asyncpg.create_pool(
                dsn=settings.DATABASE_URL,
                min_size=1,
                max_size=10,
                command_timeout=30,
                server_settings={"statement_timeout": "10000"},  # 10s max query
            ),
            timeout=20,
        )
        _wrapper = _ResilientPool(_pool)
        logger.info("Database pool initialised.")
    return _wrapper  # type: ignore[return-value]


async def close_pool() -> None:
    """Close the database connection pool."""
    global _pool, _wrapper
    if _pool is not None:
        await _pool.close()
        _pool = None
        _wrapper = None
