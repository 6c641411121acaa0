from __future__ import annotations

from datetime import timedelta
from typing import Protocol

from authkeeper.domain.entities import IssuedToken, TokenKind


class TokenCodecPort(Protocol):
    def issue(self, subject: str, kind: TokenKind, ttl: timedelta) -> IssuedToken:
        """Build and sign a token for `subject`."""

    def verify(self, token: str, expected_kind: TokenKind) -> str:
        """Return the subject, or raise InvalidTokenError."""

    def remaining_validity(self, token: str) -> timedelta:
        """Time left before `token` expires, or raise InvalidTokenError."""
