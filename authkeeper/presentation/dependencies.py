from functools import lru_cache
from typing import Callable

from fastapi import Depends, Request

from authkeeper.application.authenticator import RequestAuthenticator
from authkeeper.application.token_lifecycle import LifecyclePolicy, TokenLifecycleService
from authkeeper.domain.ports.credential_cache import CredentialCachePort
from authkeeper.domain.ports.email_port import EmailPort
from authkeeper.domain.ports.token_codec import TokenCodecPort
from authkeeper.domain.ports.unit_of_work import UnitOfWorkPort
from authkeeper.domain.ports.verification_codes import VerificationCodeStorePort
from authkeeper.domain.services import RESET_CODE_LENGTH
from authkeeper.infrastructure.db.pool import get_pool
from authkeeper.infrastructure.db.uow import PgUnitOfWork
from authkeeper.infrastructure.redis_cache.credential_cache import RedisCredentialCache
from authkeeper.infrastructure.redis_cache.pool import get_redis
from authkeeper.infrastructure.redis_cache.verification_codes import (
    RedisVerificationCodeStore,
)
from authkeeper.infrastructure.security.password import BcryptPasswordHasher
from authkeeper.infrastructure.security.tokens import JwtTokenCodec
from authkeeper.settings import get_settings


def get_uow() -> UnitOfWorkPort:
    return PgUnitOfWork(get_pool())


@lru_cache(maxsize=1)
def _codec() -> JwtTokenCodec:
    settings = get_settings()
    return JwtTokenCodec(settings.token_secret, issuer=settings.token_issuer)


def get_token_codec() -> TokenCodecPort:
    return _codec()


def get_credential_cache() -> CredentialCachePort:
    return RedisCredentialCache(get_redis())


def get_reset_codes() -> VerificationCodeStorePort:
    return RedisVerificationCodeStore(
        get_redis(),
        ttl_seconds=get_settings().code_ttl_seconds,
        code_length=RESET_CODE_LENGTH,
        key_prefix="code:reset:",
    )


def get_email_codes() -> VerificationCodeStorePort:
    settings = get_settings()
    return RedisVerificationCodeStore(
        get_redis(),
        ttl_seconds=settings.code_ttl_seconds,
        code_length=settings.code_length,
        key_prefix="code:confirm:",
    )


@lru_cache(maxsize=1)
def get_password_hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher()


def get_hash_password(
    hasher: BcryptPasswordHasher = Depends(get_password_hasher),
) -> Callable[[str], str]:
    return hasher.hash


def get_email_port(request: Request) -> EmailPort:
    # This is set in authkeeper.main lifespan()
    return request.app.state.email_adapter


def get_policy() -> LifecyclePolicy:
    return LifecyclePolicy.from_settings(get_settings())


def get_lifecycle_service(
    uow: UnitOfWorkPort = Depends(get_uow),
    codec: TokenCodecPort = Depends(get_token_codec),
    credentials: CredentialCachePort = Depends(get_credential_cache),
    reset_codes: VerificationCodeStorePort = Depends(get_reset_codes),
    email_codes: VerificationCodeStorePort = Depends(get_email_codes),
    email: EmailPort = Depends(get_email_port),
    passwords: BcryptPasswordHasher = Depends(get_password_hasher),
    policy: LifecyclePolicy = Depends(get_policy),
) -> TokenLifecycleService:
    return TokenLifecycleService(
        uow=uow,
        codec=codec,
        credentials=credentials,
        reset_codes=reset_codes,
        email_codes=email_codes,
        email=email,
        passwords=passwords,
        policy=policy,
    )


def get_authenticator(
    uow: UnitOfWorkPort = Depends(get_uow),
    codec: TokenCodecPort = Depends(get_token_codec),
    credentials: CredentialCachePort = Depends(get_credential_cache),
) -> RequestAuthenticator:
    return RequestAuthenticator(codec=codec, credentials=credentials, uow=uow)
