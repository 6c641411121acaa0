from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from authkeeper.domain.errors import AlreadyEnabled, InvalidRole


class Role(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"

    @classmethod
    def parse(cls, value: str) -> "Role":
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise InvalidRole(f"role {value} not found") from None


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    kind: TokenKind
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access: IssuedToken
    refresh: IssuedToken


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """Identity attached to a request once its bearer token is accepted."""

    id: str
    username: str
    roles: frozenset[Role]


@dataclass
class User:
    id: str | None = None
    email: str | None = None
    username: str | None = None
    password_hash: str = ""
    # most recent first
    password_history: list[str] = field(default_factory=list)
    last_password_change: datetime | None = None
    roles: set[Role] = field(default_factory=lambda: {Role.USER})
    enabled: bool = False

    def __post_init__(self):
        if self.email:
            self.email = self.email.strip().lower()
            if not self.email:
                raise ValueError("email cannot be empty")
        else:
            raise ValueError("email is required")
        if not self.username:
            self.username = self.email

    @property
    def previous_password_hash(self) -> str | None:
        return self.password_history[0] if self.password_history else None

    def enable(self):
        if self.enabled:
            raise AlreadyEnabled()
        self.enabled = True

    def changed_password_within(self, window: timedelta, now: datetime) -> bool:
        if self.last_password_change is None:
            return False
        return self.last_password_change > now - window

    def change_password(self, new_hash: str, when: datetime, history_depth: int = 1):
        if history_depth > 0:
            self.password_history = [self.password_hash, *self.password_history][
                :history_depth
            ]
        else:
            self.password_history = []
        self.password_hash = new_hash
        self.last_password_change = when

    def to_principal(self) -> AuthenticatedPrincipal:
        return AuthenticatedPrincipal(
            id=str(self.id), username=str(self.username), roles=frozenset(self.roles)
        )
