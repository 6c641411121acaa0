from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from authkeeper.domain.entities import AuthenticatedPrincipal, TokenKind
from authkeeper.domain.errors import ForbiddenError, InvalidTokenError
from authkeeper.domain.ports.credential_cache import CredentialCachePort
from authkeeper.domain.ports.token_codec import TokenCodecPort
from authkeeper.domain.ports.unit_of_work import UnitOfWorkPort

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# Exact (method, path) matches. Prefixes are never expanded.
PUBLIC_ROUTES: frozenset[tuple[str, str]] = frozenset(
    {
        ("POST", "/v1/auth/login"),
        ("POST", "/v1/auth/register"),
        ("POST", "/v1/auth/refresh-token"),
        ("POST", "/v1/auth/forgot-password"),
        ("POST", "/v1/auth/reset-password"),
        ("GET", "/v1/auth/validate-code"),
        ("POST", "/v1/auth/validate-code"),
        ("POST", "/v1/auth/refresh-code"),
    }
)


@dataclass(frozen=True)
class AuthenticatedRequest:
    """Read-only identity attached to a request after admission."""

    principal: AuthenticatedPrincipal
    token: str
    admitted_at: datetime


def extract_bearer(authorization: Optional[str]) -> str:
    if not authorization or not authorization.strip():
        raise ForbiddenError("token not found")
    if not authorization.startswith(BEARER_PREFIX):
        raise InvalidTokenError("malformed authorization header")
    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise InvalidTokenError("malformed authorization header")
    return token


class RequestAuthenticator:
    """
    Per-request admission gate.

    Order matters: revocation is consulted before the signature, exactly once,
    and a cache outage propagates (the request is denied, never let through).
    """

    def __init__(
        self,
        *,
        codec: TokenCodecPort,
        credentials: CredentialCachePort,
        uow: UnitOfWorkPort,
        public_routes: Iterable[tuple[str, str]] = PUBLIC_ROUTES,
    ) -> None:
        self._codec = codec
        self._credentials = credentials
        self._uow = uow
        self._public = frozenset((m.upper(), p) for m, p in public_routes)

    def is_public(self, method: str, path: str) -> bool:
        return (method.upper(), path) in self._public

    async def authenticate(
        self, method: str, path: str, authorization: Optional[str]
    ) -> Optional[AuthenticatedRequest]:
        """
        None for anonymous calls to public routes. A public route that carries an
        Authorization header is still admitted, so handlers can act on the caller.
        Raises ForbiddenError/InvalidTokenError to deny.
        """
        if self.is_public(method, path) and not (authorization or "").strip():
            return None

        token = extract_bearer(authorization)
        if await self._credentials.is_revoked(token):
            raise ForbiddenError("token revoked")
        subject = self._codec.verify(token, TokenKind.ACCESS)

        async with self._uow as tx:
            user = await tx.users.find_by_email(subject)
        if user is None or not user.enabled:
            logger.warning("token subject does not resolve to an active user")
            raise InvalidTokenError()

        return AuthenticatedRequest(
            principal=user.to_principal(),
            token=token,
            admitted_at=datetime.now(timezone.utc),
        )
