from __future__ import annotations

import logging
from typing import Any, Optional

import psycopg
from psycopg_pool import AsyncConnectionPool

from authkeeper.domain.ports.unit_of_work import UnitOfWorkPort
from authkeeper.infrastructure.db.users_repo import PgUserRepository

logger = logging.getLogger(__name__)


class PgUnitOfWork(UnitOfWorkPort):
    """
    Leases one pooled connection per `async with` block.

    Re-entrant across blocks (the lifecycle service opens several per call),
    never nested: each block gets a fresh lease and a fresh repository.
    """

    users: PgUserRepository

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool
        self._lease: Optional[Any] = None
        self._conn: Optional[psycopg.AsyncConnection] = None
        self._committed = False

    async def __aenter__(self) -> "PgUnitOfWork":
        if self._lease is not None:
            raise RuntimeError("unit of work is already active")
        self._lease = self._pool.connection()
        self._conn = await self._lease.__aenter__()
        self._committed = False
        self.users = PgUserRepository(self._conn)
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        lease, conn = self._lease, self._conn
        self._lease, self._conn = None, None
        try:
            # the pooled context would commit an open transaction on a clean exit
            if conn is not None and (exc_value is not None or not self._committed):
                await self._quiet_rollback(conn)
        finally:
            self._committed = False
            if lease is not None:
                await lease.__aexit__(exc_type, exc_value, traceback)

    @staticmethod
    async def _quiet_rollback(conn: psycopg.AsyncConnection) -> None:
        try:
            await conn.rollback()
        except psycopg.Error as e:
            logger.warning("rollback failed", extra={"error": str(e)})

    async def commit(self) -> None:
        if self._conn is None:
            raise RuntimeError("commit outside of an active unit of work")
        await self._conn.commit()
        self._committed = True

    async def rollback(self) -> None:
        if self._conn is not None:
            await self._conn.rollback()
        self._committed = False
