from __future__ import annotations

from typing import Any, Optional, Sequence

import psycopg
from psycopg import errors as pg_errors

from authkeeper.domain.entities import Role, User
from authkeeper.domain.errors import ConflictError
from authkeeper.domain.ports.user_repository import UserRepositoryPort

_COLUMNS = (
    "id, email, username, password_hash, password_history, "
    "last_password_change, roles, enabled"
)


def _row_to_user(row: Sequence[Any]) -> User:
    (
        id_,
        email,
        username,
        password_hash,
        password_history,
        last_password_change,
        roles,
        enabled,
    ) = row
    return User(
        id=str(id_),
        email=str(email),
        username=username,
        password_hash=password_hash,
        password_history=list(password_history or []),
        last_password_change=last_password_change,
        roles={Role(r) for r in (roles or [])},
        enabled=bool(enabled),
    )


class PgUserRepository(UserRepositoryPort):
    """
    Postgres implementation of UserRepositoryPort.

    NOTE:
    - This repo is constructed with an *active async connection* supplied by the UoW.
    - It does not commit; the UnitOfWork controls the transaction boundary.
    """

    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    async def find_by_email(self, email: str) -> Optional[User]:
        sql = f"SELECT {_COLUMNS} FROM users WHERE email = LOWER(TRIM(%s))"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (email,))
            row = await cur.fetchone()
        return _row_to_user(row) if row else None

    async def get_by_id(self, user_id: str) -> Optional[User]:
        sql = f"SELECT {_COLUMNS} FROM users WHERE id = %s"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (user_id,))
            row = await cur.fetchone()
        return _row_to_user(row) if row else None

    async def create(self, user: User) -> User:
        sql = f"""
        INSERT INTO users
            (email, username, password_hash, password_history,
             last_password_change, roles, enabled)
        VALUES (LOWER(TRIM(%s)), %s, %s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
        """
        params = (
            user.email,
            user.username,
            user.password_hash,
            user.password_history,
            user.last_password_change,
            sorted(r.value for r in user.roles),
            user.enabled,
        )
        try:
            async with self._conn.cursor() as cur:
                await cur.execute(sql, params)
                row = await cur.fetchone()
        except pg_errors.UniqueViolation as e:
            raise ConflictError() from e

        if not row:
            raise RuntimeError("create returned no row")
        return _row_to_user(row)

    async def save(self, user: User) -> None:
        sql = """
        UPDATE users
           SET username = %s,
               password_hash = %s,
               password_history = %s,
               last_password_change = %s,
               roles = %s,
               enabled = %s
         WHERE id = %s
        """
        params = (
            user.username,
            user.password_hash,
            user.password_history,
            user.last_password_change,
            sorted(r.value for r in user.roles),
            user.enabled,
            user.id,
        )
        async with self._conn.cursor() as cur:
            await cur.execute(sql, params)
