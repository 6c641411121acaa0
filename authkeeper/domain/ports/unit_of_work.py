from __future__ import annotations

from types import TracebackType
from typing import Protocol, Type

from authkeeper.domain.ports.user_repository import UserRepositoryPort


class UnitOfWorkPort(Protocol):
    """
    One user-store transaction per `async with` block.

    Lookups open a block, read and leave. Writes call `commit()` before the
    block ends; leaving without a commit, or with an exception, rolls back.
    Cache and email side effects stay outside the block except where a flow
    needs them to fail the transaction (registration stores its code first).
    """

    users: UserRepositoryPort

    async def __aenter__(self) -> "UnitOfWorkPort": ...

    async def __aexit__(
        self,
        exc_type: Type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
