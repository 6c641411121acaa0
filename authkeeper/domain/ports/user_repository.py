from __future__ import annotations

from typing import Optional, Protocol

from authkeeper.domain.entities import User


class UserRepositoryPort(Protocol):
    async def find_by_email(self, email: str) -> Optional[User]:
        """Return the user with this (normalized) email, or None."""

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Return the user with this id, or None."""

    async def create(self, user: User) -> User:
        """
        Insert a new user and return it with its generated id.
        Raises ConflictError if the email is already taken.
        """

    async def save(self, user: User) -> None:
        """Persist password, history, last change, roles and enabled flag."""
