from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from authkeeper.domain.entities import TokenPair, User
from authkeeper.schemas.masking import sensitive


class AcceptedOut(BaseModel):
    status: Literal["accepted"] = "accepted"


class OkOut(BaseModel):
    status: Literal["ok"] = "ok"
    message: Optional[str] = None


class TokenPairOut(BaseModel):
    access_token: str = sensitive()
    refresh_token: str = sensitive()
    token_type: Literal["Bearer"] = "Bearer"
    access_expires_at: datetime
    refresh_expires_at: datetime

    @classmethod
    def from_pair(cls, pair: TokenPair) -> "TokenPairOut":
        return cls(
            access_token=pair.access.token,
            refresh_token=pair.refresh.token,
            access_expires_at=pair.access.expires_at,
            refresh_expires_at=pair.refresh.expires_at,
        )


class View(str, Enum):
    BASIC = "basic"
    REGULAR = "regular"
    DETAILED = "detailed"


class UserOut(BaseModel):
    id: str = Field(..., description="The id of the user")
    username: str
    enabled: bool
    email: Optional[str] = None
    roles: Optional[list[str]] = None
    last_password_change: Optional[datetime] = None


def _basic(user: User) -> dict:
    return {"id": str(user.id), "username": str(user.username), "enabled": user.enabled}


def _regular(user: User) -> dict:
    return {
        **_basic(user),
        "email": user.email,
        "roles": sorted(r.value for r in user.roles),
    }


def _detailed(user: User) -> dict:
    return {**_regular(user), "last_password_change": user.last_password_change}


_VIEWS = {View.BASIC: _basic, View.REGULAR: _regular, View.DETAILED: _detailed}


def render_user(user: User, view: View = View.BASIC) -> UserOut:
    """Explicit field selection per named view. Password hashes are never selected."""
    return UserOut(**_VIEWS[view](user))
