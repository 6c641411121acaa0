from typing import Annotated

from fastapi import APIRouter, Depends, Query

from authkeeper.application.authenticator import AuthenticatedRequest
from authkeeper.domain.errors import InvalidTokenError
from authkeeper.domain.ports.unit_of_work import UnitOfWorkPort
from authkeeper.presentation.dependencies import get_uow
from authkeeper.presentation.security import current_auth
from authkeeper.schemas.responses import UserOut, View, render_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserOut, response_model_exclude_none=True)
async def get_me(
    auth: Annotated[AuthenticatedRequest, Depends(current_auth)],
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    view: Annotated[View, Query()] = View.REGULAR,
):
    async with uow as tx:
        user = await tx.users.get_by_id(auth.principal.id)
    if user is None:
        raise InvalidTokenError()
    return render_user(user, view)
