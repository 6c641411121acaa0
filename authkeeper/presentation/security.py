from fastapi import Depends, Request

from authkeeper.application.authenticator import (
    AuthenticatedRequest,
    RequestAuthenticator,
)
from authkeeper.domain.errors import ForbiddenError
from authkeeper.presentation.dependencies import get_authenticator


async def authenticate_request(
    request: Request,
    authenticator: RequestAuthenticator = Depends(get_authenticator),
) -> None:
    """Router-wide gate: runs once per request before any handler."""
    auth = await authenticator.authenticate(
        request.method, request.url.path, request.headers.get("Authorization")
    )
    request.state.auth = auth


def current_auth(request: Request) -> AuthenticatedRequest:
    auth = getattr(request.state, "auth", None)
    if auth is None:
        raise ForbiddenError("token not found")
    return auth
