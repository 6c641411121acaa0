from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from authkeeper.domain.entities import TokenKind
from authkeeper.domain.errors import CacheUnavailableError
from authkeeper.domain.ports.credential_cache import CredentialCachePort
from authkeeper.domain.services import token_fingerprint

logger = logging.getLogger(__name__)


def _ttl_ms(ttl: timedelta) -> int:
    return int(ttl.total_seconds() * 1000)


class RedisCredentialCache(CredentialCachePort):
    """
    Registry slots live at `{prefix}token:{principal_id}:{kind}`.

    Revocations are one key per token (`{prefix}revoked:{sha256(token)}`) so each
    member expires with the token it blocks; a redis SET cannot expire members.
    """

    def __init__(self, redis: Redis, *, key_prefix: str = "auth:") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _slot_key(self, principal_id: str, kind: TokenKind) -> str:
        return f"{self._prefix}token:{principal_id}:{kind.value}"

    def _revoked_key(self, token: str) -> str:
        return f"{self._prefix}revoked:{token_fingerprint(token)}"

    async def put(
        self, principal_id: str, kind: TokenKind, token: str, ttl: timedelta
    ) -> None:
        ms = _ttl_ms(ttl)
        if ms <= 0:
            return
        try:
            await self._redis.set(self._slot_key(principal_id, kind), token, px=ms)
        except RedisError as e:
            logger.error("credential cache put failed", extra={"error": str(e)})
            raise CacheUnavailableError() from e

    async def get(self, principal_id: str, kind: TokenKind) -> Optional[str]:
        try:
            return await self._redis.get(self._slot_key(principal_id, kind))
        except RedisError as e:
            logger.error("credential cache get failed", extra={"error": str(e)})
            raise CacheUnavailableError() from e

    async def revoke(self, token: str, ttl: timedelta) -> None:
        ms = _ttl_ms(ttl)
        if ms <= 0:
            return
        try:
            await self._redis.set(self._revoked_key(token), "1", px=ms)
        except RedisError as e:
            logger.error("credential cache revoke failed", extra={"error": str(e)})
            raise CacheUnavailableError() from e

    async def is_revoked(self, token: str) -> bool:
        try:
            return bool(await self._redis.exists(self._revoked_key(token)))
        except RedisError as e:
            logger.error("revocation lookup failed", extra={"error": str(e)})
            raise CacheUnavailableError() from e
