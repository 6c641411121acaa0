from dataclasses import replace
from datetime import timedelta
from typing import Any

from authkeeper.domain.entities import TokenKind, User
from authkeeper.domain.errors import (
    CacheUnavailableError,
    ConflictError,
    EmailDeliveryError,
)


class FakeUserRepo:
    def __init__(self):
        self.by_email: dict[str, User] = {}
        self.saved: list[User] = []
        self._next = 0

    def seed(self, user: User) -> User:
        if user.id is None:
            self._next += 1
            user.id = f"u{self._next}"
        self.by_email[user.email] = user
        return user

    async def find_by_email(self, email: str) -> User | None:
        user = self.by_email.get(email.strip().lower())
        # hand out copies, like a real datastore would
        return replace(user, password_history=list(user.password_history)) if user else None

    async def get_by_id(self, user_id: str) -> User | None:
        for user in self.by_email.values():
            if user.id == user_id:
                return await self.find_by_email(user.email)
        return None

    async def create(self, user: User) -> User:
        if user.email in self.by_email:
            raise ConflictError()
        return self.seed(user)

    async def save(self, user: User) -> None:
        self.saved.append(user)
        self.by_email[user.email] = user


class FakeUoW:
    def __init__(self, users: FakeUserRepo | None = None):
        self.users = users or FakeUserRepo()
        self.committed = False
        self.rolled_back = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc:
            self.rolled_back = True

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


class FakeCredentialCache:
    def __init__(self):
        self.slots: dict[tuple[str, TokenKind], str] = {}
        self.revoked: dict[str, timedelta] = {}
        self.puts: list[tuple[str, TokenKind, str, timedelta]] = []

    async def put(self, principal_id: str, kind: TokenKind, token: str, ttl: timedelta):
        self.puts.append((principal_id, kind, token, ttl))
        self.slots[(principal_id, kind)] = token

    async def get(self, principal_id: str, kind: TokenKind) -> str | None:
        return self.slots.get((principal_id, kind))

    async def revoke(self, token: str, ttl: timedelta) -> None:
        if ttl > timedelta(0):
            self.revoked[token] = ttl

    async def is_revoked(self, token: str) -> bool:
        return token in self.revoked


class FakeErroredCredentialCache(FakeCredentialCache):
    async def is_revoked(self, token: str) -> bool:
        raise CacheUnavailableError("Redis down")

    async def get(self, principal_id: str, kind: TokenKind) -> str | None:
        raise CacheUnavailableError("Redis down")


class FakeCodeStore:
    def __init__(self, code: str = "AbC123"):
        self.code = code
        self.codes: dict[str, str] = {}
        self.throttled: set[str] = set()
        self.invalidations: list[str] = []

    async def generate(self, email: str) -> str:
        self.codes[email] = self.code
        return self.code

    async def matches(self, email: str, code: str) -> bool:
        return self.codes.get(email) == code

    async def check(self, email: str, code: str) -> bool:
        if self.codes.get(email) == code:
            del self.codes[email]
            return True
        return False

    async def invalidate(self, email: str) -> None:
        self.invalidations.append(email)
        self.codes.pop(email, None)

    async def throttle(self, email: str, seconds: int) -> bool:
        if email in self.throttled:
            return False
        self.throttled.add(email)
        return True

    async def release_throttle(self, email: str) -> None:
        self.throttled.discard(email)


class FakeEmailOK:
    def __init__(self):
        self.calls: list[dict[str, Any]] = []

    async def send(
        self, *, to: str, subject: str, body: str, idempotency_key=None
    ) -> None:
        self.calls.append(
            {
                "to": to,
                "subject": subject,
                "body": body,
                "idempotency_key": idempotency_key,
            }
        )


class FakeEmailDown:
    def __init__(self):
        self.calls: int = 0

    async def send(
        self, *, to: str, subject: str, body: str, idempotency_key=None
    ) -> None:
        self.calls += 1
        raise EmailDeliveryError("SMTP responded 503: unavailable")


class FakePasswordHasher:
    def hash(self, plain: str) -> str:
        return "hashed-" + plain

    def verify(self, plain: str, password_hash: str | None) -> bool:
        return password_hash == "hashed-" + plain

    def matches_any(self, plain: str, hashes) -> bool:
        return any(self.verify(plain, h) for h in hashes)
