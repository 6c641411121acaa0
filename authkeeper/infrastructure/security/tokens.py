from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import jwt

from authkeeper.domain.entities import IssuedToken, TokenKind
from authkeeper.domain.errors import InvalidTokenError, SigningError
from authkeeper.domain.ports.token_codec import TokenCodecPort

_ALGORITHM = "HS256"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JwtTokenCodec(TokenCodecPort):
    """
    HS256 JWTs carrying iss, sub, exp, iat, jti and a `kind` claim.

    Pure: verification never touches the cache; revocation is checked by callers.
    """

    def __init__(
        self,
        secret: str,
        *,
        issuer: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise SigningError("token secret is empty")
        if not issuer:
            raise SigningError("token issuer is empty")
        self._secret = secret
        self._issuer = issuer
        self._clock = clock

    def issue(self, subject: str, kind: TokenKind, ttl: timedelta) -> IssuedToken:
        now = self._clock()
        exp = int((now + ttl).timestamp())
        payload = {
            "iss": self._issuer,
            "sub": subject,
            "kind": kind.value,
            "iat": int(now.timestamp()),
            "exp": exp,
            "jti": uuid.uuid4().hex,
        }
        try:
            token = jwt.encode(payload, self._secret, algorithm=_ALGORITHM)
        except jwt.PyJWTError as e:
            raise SigningError(f"could not sign {kind.value} token") from e
        return IssuedToken(
            token=token,
            kind=kind,
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )

    def _decode(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                issuer=self._issuer,
                options={"require": ["exp", "iss", "sub", "kind"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError() from e

    def _expires_at(self, claims: dict[str, Any]) -> datetime:
        expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
        # the injected clock may disagree with the wall clock PyJWT uses
        if expires_at <= self._clock():
            raise InvalidTokenError()
        return expires_at

    def verify(self, token: str, expected_kind: TokenKind) -> str:
        claims = self._decode(token)
        self._expires_at(claims)
        if claims.get("kind") != expected_kind.value:
            raise InvalidTokenError()
        return str(claims["sub"])

    def remaining_validity(self, token: str) -> timedelta:
        claims = self._decode(token)
        return self._expires_at(claims) - self._clock()
