from __future__ import annotations

from typing import Iterable

from passlib.context import CryptContext

from authkeeper.settings import get_settings


class BcryptPasswordHasher:
    """
    bcrypt hashing with history checks.

    `rounds` defaults to settings.bcrypt_rounds; tests pass the bcrypt minimum.
    """

    def __init__(self, rounds: int | None = None) -> None:
        if rounds is None:
            rounds = int(get_settings().bcrypt_rounds)
        self._ctx = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, plain: str) -> str:
        return self._ctx.hash(plain)

    def verify(self, plain: str, password_hash: str | None) -> bool:
        """Safe-timing check; an absent or malformed hash never matches."""
        if not password_hash:
            return False
        try:
            return self._ctx.verify(plain, password_hash)
        except ValueError:
            return False

    def matches_any(self, plain: str, hashes: Iterable[str | None]) -> bool:
        return any(self.verify(plain, h) for h in hashes)
