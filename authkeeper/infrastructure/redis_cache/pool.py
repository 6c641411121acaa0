from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

from authkeeper.settings import get_settings

_client: Optional[Redis] = None


def get_redis() -> Redis:
    """
    Shared client for the credential cache and the code stores.

    Strings in, strings out (decode_responses). Every call is bounded by
    `redis_timeout_seconds`; a timeout is a RedisError like any other outage,
    so callers deny instead of waiting.
    """
    global _client
    if _client is None:
        settings = get_settings()
        _client = Redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=settings.redis_timeout_seconds,
            socket_connect_timeout=settings.redis_timeout_seconds,
        )
    return _client


async def ping_redis() -> None:
    await get_redis().ping()


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
