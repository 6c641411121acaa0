from datetime import timedelta
from uuid import uuid4

import pytest

from authkeeper.domain.entities import TokenKind
from authkeeper.infrastructure.redis_cache.credential_cache import RedisCredentialCache
from authkeeper.infrastructure.redis_cache.verification_codes import (
    RedisVerificationCodeStore,
)


@pytest.mark.asyncio
async def test_credential_cache_against_real_redis(redis_client):
    prefix = f"it:{uuid4().hex}:"
    cache = RedisCredentialCache(redis_client, key_prefix=prefix)

    await cache.put("u1", TokenKind.REFRESH, "ref-1", timedelta(seconds=30))
    assert await cache.get("u1", TokenKind.REFRESH) == "ref-1"

    await cache.revoke("ref-1", timedelta(seconds=30))
    assert await cache.is_revoked("ref-1") is True

    for key in await redis_client.keys(f"{prefix}*"):
        assert 0 < await redis_client.pttl(key) <= 30_000
        await redis_client.delete(key)


@pytest.mark.asyncio
async def test_code_store_consumes_once_against_real_redis(redis_client):
    store = RedisVerificationCodeStore(
        redis_client, ttl_seconds=30, key_prefix=f"it:{uuid4().hex}:"
    )
    email = f"{uuid4().hex}@it.example.com"

    code = await store.generate(email)
    assert await store.check(email, "x" * len(code)) is False
    assert await store.check(email, code) is True
    assert await store.check(email, code) is False
