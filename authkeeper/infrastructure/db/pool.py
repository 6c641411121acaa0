from __future__ import annotations

from typing import Optional

from psycopg_pool import AsyncConnectionPool

from authkeeper.settings import get_settings

_pool: Optional[AsyncConnectionPool] = None

# a dead database must fail a request quickly instead of hanging the gate
CONNECT_TIMEOUT_SECONDS = 3


def _with_connect_timeout(dsn: str, seconds: int = CONNECT_TIMEOUT_SECONDS) -> str:
    if "connect_timeout=" in dsn:
        return dsn
    sep = "&" if "?" in dsn else "?"
    return f"{dsn}{sep}connect_timeout={seconds}"


def get_pool() -> AsyncConnectionPool:
    """
    Process-wide user-store pool, built closed.

    The lifespan hook opens it; if the database is down at that point requests
    fail with a 500 rather than the service refusing to start.
    """
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = AsyncConnectionPool(
            _with_connect_timeout(settings.database_url),
            min_size=1,
            max_size=settings.db_pool_max_size,
            timeout=5,
            open=False,
        )
    return _pool


async def open_pool() -> AsyncConnectionPool:
    pool = get_pool()
    if not getattr(pool, "is_open", False):
        await pool.open()
    return pool


async def ping_database(timeout: float = 2.0) -> None:
    """Round-trip `SELECT 1`; raises whatever psycopg raises."""
    async with get_pool().connection(timeout=timeout) as conn:
        await conn.execute("SELECT 1")


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
