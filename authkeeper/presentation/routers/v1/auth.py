from typing import Annotated, Callable

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import EmailStr

from authkeeper.application.authenticator import AuthenticatedRequest
from authkeeper.application.register_user import register_user
from authkeeper.application.token_lifecycle import TokenLifecycleService
from authkeeper.domain.ports.email_port import EmailPort
from authkeeper.domain.ports.unit_of_work import UnitOfWorkPort
from authkeeper.domain.ports.verification_codes import VerificationCodeStorePort
from authkeeper.presentation.audit import record_arguments
from authkeeper.presentation.dependencies import (
    get_email_codes,
    get_email_port,
    get_hash_password,
    get_lifecycle_service,
    get_uow,
)
from authkeeper.presentation.security import current_auth
from authkeeper.schemas.requests import (
    ForgotPasswordIn,
    LoginIn,
    RefreshCodeIn,
    RefreshTokenIn,
    ResetPasswordIn,
    UserCreateIn,
    ValidateCodeIn,
)
from authkeeper.schemas.responses import AcceptedOut, OkOut, TokenPairOut

router = APIRouter(prefix="/auth", tags=["Auth"])

Lifecycle = Annotated[TokenLifecycleService, Depends(get_lifecycle_service)]


@router.post("/register", status_code=status.HTTP_202_ACCEPTED, response_model=AcceptedOut)
async def post_register(
    body: UserCreateIn,
    request: Request,
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    email_codes: Annotated[VerificationCodeStorePort, Depends(get_email_codes)],
    email_port: Annotated[EmailPort, Depends(get_email_port)],
    hash_password: Annotated[Callable[[str], str], Depends(get_hash_password)],
):
    record_arguments(request, body)
    await register_user(
        uow=uow,
        email_codes=email_codes,
        email_port=email_port,
        email=body.email,
        password=body.password,
        hash_password=hash_password,
        username=body.username,
        role=body.role,
    )
    return AcceptedOut()


@router.post("/login", response_model=TokenPairOut)
async def post_login(body: LoginIn, request: Request, service: Lifecycle):
    record_arguments(request, body)
    pair = await service.login(body.email, body.password)
    return TokenPairOut.from_pair(pair)


@router.post("/refresh-token", response_model=TokenPairOut)
async def post_refresh_token(body: RefreshTokenIn, request: Request, service: Lifecycle):
    record_arguments(request, body)
    pair = await service.refresh(body.refresh_token)
    return TokenPairOut.from_pair(pair)


@router.post("/logout", response_model=OkOut)
async def post_logout(
    service: Lifecycle,
    auth: Annotated[AuthenticatedRequest, Depends(current_auth)],
):
    await service.logout(auth.token)
    return OkOut(message="logged out")


@router.post("/forgot-password", response_model=OkOut)
async def post_forgot_password(
    body: ForgotPasswordIn, request: Request, service: Lifecycle
):
    record_arguments(request, body)
    auth = getattr(request.state, "auth", None)
    await service.forgot_password(
        email=body.email, principal=auth.principal if auth else None
    )
    return OkOut(message="if the account exists, an email with instructions was sent")


@router.post("/reset-password", response_model=OkOut)
async def post_reset_password(body: ResetPasswordIn, request: Request, service: Lifecycle):
    record_arguments(request, body)
    await service.reset_password(body.code, body.password)
    return OkOut(message="password changed")


@router.post("/validate-code", response_model=OkOut)
async def post_validate_code(body: ValidateCodeIn, request: Request, service: Lifecycle):
    record_arguments(request, body)
    await service.validate_code(body.email, body.code)
    return OkOut(message="email confirmed, you can log in now")


@router.get("/validate-code", response_model=OkOut)
async def get_validate_code(
    service: Lifecycle,
    email: Annotated[EmailStr, Query(max_length=255)],
    code: Annotated[str, Query(min_length=1, max_length=64)],
):
    await service.validate_code(email, code)
    return OkOut(message="email confirmed, you can log in now")


@router.post("/refresh-code", response_model=OkOut)
async def post_refresh_code(body: RefreshCodeIn, request: Request, service: Lifecycle):
    record_arguments(request, body)
    await service.refresh_code(body.email)
    return OkOut(message="a new verification code was sent")
