from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

import authkeeper.domain.services as domain_services
from authkeeper.domain.errors import CacheUnavailableError
from authkeeper.domain.ports.verification_codes import VerificationCodeStorePort

logger = logging.getLogger(__name__)


_LUA_CONSUME = """
-- KEYS[1]: code key
-- ARGV[1]: expected digest (base64)
local key = KEYS[1]
local expected = ARGV[1]
local cur = redis.call('HGET', key, 'digest')
if not cur then
  return 0
end
if cur ~= expected then
  return 0
end
redis.call('DEL', key)
return 1
"""


class RedisVerificationCodeStore(VerificationCodeStorePort):
    """
    Codes are kept hashed: {salt, digest=SHA256(salt || code)} with a TTL.
    The plain code only ever leaves through generate().
    """

    def __init__(
        self,
        redis: Redis,
        *,
        ttl_seconds: int,
        code_length: int = domain_services.RESET_CODE_LENGTH,
        key_prefix: str = "code:",
    ) -> None:
        self._redis = redis
        self._ttl = ttl_seconds
        self._length = code_length
        self._prefix = key_prefix

    def _key(self, email: str) -> str:
        return f"{self._prefix}{email.strip().lower()}"

    def _throttle_key(self, email: str) -> str:
        return f"{self._prefix}throttle:{email.strip().lower()}"

    async def generate(self, email: str) -> str:
        code = domain_services.generate_code(self._length)
        salt_b64, digest_b64 = domain_services.make_code_digest(code)
        key = self._key(email)
        try:
            pipe = self._redis.pipeline(transaction=True)
            pipe.delete(key)
            pipe.hset(key, mapping={"salt": salt_b64, "digest": digest_b64})
            pipe.expire(key, self._ttl)
            await pipe.execute()
        except RedisError as e:
            logger.error("storing verification code failed", extra={"error": str(e)})
            raise CacheUnavailableError() from e
        return code

    async def matches(self, email: str, code: str) -> bool:
        if not code:
            return False
        try:
            stored = await self._redis.hgetall(self._key(email))
        except RedisError as e:
            logger.error("reading verification code failed", extra={"error": str(e)})
            raise CacheUnavailableError() from e
        if not stored or "salt" not in stored or "digest" not in stored:
            return False
        return domain_services.verify_code_digest(code, stored["salt"], stored["digest"])

    async def check(self, email: str, code: str) -> bool:
        if not code:
            return False
        key = self._key(email)
        try:
            # read salt (to compute expected digest)
            stored = await self._redis.hgetall(key)
            if not stored or "salt" not in stored or "digest" not in stored:
                return False
            expected = domain_services.code_digest_b64(code, stored["salt"])
            # atomic compare-and-delete
            res = await self._redis.eval(_LUA_CONSUME, 1, key, expected)
        except RedisError as e:
            logger.error("checking verification code failed", extra={"error": str(e)})
            raise CacheUnavailableError() from e
        return int(res) == 1

    async def invalidate(self, email: str) -> None:
        try:
            await self._redis.delete(self._key(email))
        except RedisError as e:
            raise CacheUnavailableError() from e

    async def throttle(self, email: str, seconds: int) -> bool:
        if seconds <= 0:
            return True
        try:
            claimed = await self._redis.set(
                self._throttle_key(email), "1", ex=seconds, nx=True
            )
        except RedisError as e:
            raise CacheUnavailableError() from e
        return bool(claimed)

    async def release_throttle(self, email: str) -> None:
        try:
            await self._redis.delete(self._throttle_key(email))
        except RedisError as e:
            raise CacheUnavailableError() from e
