from __future__ import annotations

from datetime import timedelta
from typing import Optional, Protocol

from authkeeper.domain.entities import TokenKind


class CredentialCachePort(Protocol):
    """
    Token registry (one slot per principal and kind) plus revocation list.

    Every operation is per-key atomic; there are no cross-key transactions.
    Cache outages raise CacheUnavailableError and are never masked.
    """

    async def put(
        self, principal_id: str, kind: TokenKind, token: str, ttl: timedelta
    ) -> None:
        """Overwrite the (principal_id, kind) slot unconditionally."""

    async def get(self, principal_id: str, kind: TokenKind) -> Optional[str]:
        """Current token in the slot, or None."""

    async def revoke(self, token: str, ttl: timedelta) -> None:
        """Deny `token` for `ttl`. No-op when `ttl` is not positive."""

    async def is_revoked(self, token: str) -> bool:
        """True while a revocation entry for `token` exists."""
