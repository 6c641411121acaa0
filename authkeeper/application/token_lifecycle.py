from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

import authkeeper.domain.services as domain_services
from authkeeper.domain.entities import (
    AuthenticatedPrincipal,
    IssuedToken,
    TokenKind,
    TokenPair,
    User,
)
from authkeeper.domain.errors import (
    AccountDisabled,
    AlreadyEnabled,
    BadRequestError,
    EmailDeliveryError,
    ForbiddenError,
    InvalidCredentials,
    InvalidTokenError,
    InvalidVerificationCode,
    PasswordReused,
    RateLimitedError,
)
from authkeeper.domain.ports.credential_cache import CredentialCachePort
from authkeeper.domain.ports.email_port import EmailPort
from authkeeper.domain.ports.token_codec import TokenCodecPort
from authkeeper.domain.ports.unit_of_work import UnitOfWorkPort
from authkeeper.domain.ports.verification_codes import VerificationCodeStorePort

logger = logging.getLogger(__name__)


class PasswordHasher(Protocol):
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, password_hash: str | None) -> bool: ...
    def matches_any(self, plain: str, hashes: list[str]) -> bool: ...


@dataclass(frozen=True)
class LifecyclePolicy:
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=1)
    reset_token_ttl: timedelta = timedelta(minutes=15)
    password_change_cooldown: timedelta = timedelta(hours=1)
    resend_throttle_seconds: int = 60
    # how many previous password hashes a new password is checked against
    password_history_depth: int = 1
    # revoke the token a login/refresh supersedes instead of letting it live out its TTL
    revoke_superseded_tokens: bool = False
    reset_password_url: str = "http://localhost:8000/v1/auth/reset-password"

    @classmethod
    def from_settings(cls, settings) -> "LifecyclePolicy":
        return cls(
            access_ttl=timedelta(minutes=settings.access_token_ttl_minutes),
            refresh_ttl=timedelta(minutes=settings.refresh_token_ttl_minutes),
            reset_token_ttl=timedelta(minutes=settings.reset_token_ttl_minutes),
            password_change_cooldown=timedelta(
                seconds=settings.password_change_cooldown_seconds
            ),
            resend_throttle_seconds=settings.resend_throttle_seconds,
            password_history_depth=settings.password_history_depth,
            revoke_superseded_tokens=settings.revoke_superseded_tokens,
            reset_password_url=settings.reset_password_url,
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize(email: str) -> str:
    return email.strip().lower()


class TokenLifecycleService:
    """
    Login, refresh, logout, password reset and email-confirmation flows.

    State lives only in the credential cache and the user datastore; the
    service holds nothing between calls and can be built per request.
    """

    def __init__(
        self,
        *,
        uow: UnitOfWorkPort,
        codec: TokenCodecPort,
        credentials: CredentialCachePort,
        reset_codes: VerificationCodeStorePort,
        email_codes: VerificationCodeStorePort,
        email: EmailPort,
        passwords: PasswordHasher,
        policy: LifecyclePolicy = LifecyclePolicy(),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._uow = uow
        self._codec = codec
        self._credentials = credentials
        self._reset_codes = reset_codes
        self._email_codes = email_codes
        self._email = email
        self._passwords = passwords
        self._policy = policy
        self._clock = clock

    def _ttl_for(self, kind: TokenKind) -> timedelta:
        return (
            self._policy.access_ttl
            if kind is TokenKind.ACCESS
            else self._policy.refresh_ttl
        )

    async def _find_user(self, email: str) -> Optional[User]:
        async with self._uow as tx:
            return await tx.users.find_by_email(_normalize(email))

    async def _revoke(self, token: str) -> None:
        try:
            remaining = self._codec.remaining_validity(token)
        except InvalidTokenError:
            # already expired or unreadable: nothing left to block
            return
        await self._credentials.revoke(token, remaining)

    async def _issue_and_register(self, user: User, kind: TokenKind) -> IssuedToken:
        if self._policy.revoke_superseded_tokens:
            previous = await self._credentials.get(str(user.id), kind)
            if previous:
                await self._revoke(previous)

        issued = self._codec.issue(str(user.email), kind, self._ttl_for(kind))
        await self._credentials.put(
            str(user.id), kind, issued.token, issued.expires_at - self._clock()
        )
        return issued

    async def _live_refresh_token(self, user: User) -> Optional[IssuedToken]:
        """The registered refresh token, unless it is absent, revoked or unreadable."""
        current = await self._credentials.get(str(user.id), TokenKind.REFRESH)
        if not current:
            return None
        if await self._credentials.is_revoked(current):
            return None
        try:
            remaining = self._codec.remaining_validity(current)
        except InvalidTokenError:
            return None
        return IssuedToken(
            token=current,
            kind=TokenKind.REFRESH,
            expires_at=self._clock() + remaining,
        )

    async def login(self, email: str, password: str) -> TokenPair:
        user = await self._find_user(email)
        if user is None or not self._passwords.verify(password, user.password_hash):
            raise InvalidCredentials()
        if not user.enabled:
            raise AccountDisabled()

        access = await self._issue_and_register(user, TokenKind.ACCESS)
        refresh = await self._live_refresh_token(user)
        if refresh is None:
            refresh = await self._issue_and_register(user, TokenKind.REFRESH)

        logger.info("login succeeded", extra={"principal_id": user.id})
        return TokenPair(access=access, refresh=refresh)

    async def refresh(self, refresh_token: str) -> TokenPair:
        if await self._credentials.is_revoked(refresh_token):
            raise ForbiddenError("token revoked")
        subject = self._codec.verify(refresh_token, TokenKind.REFRESH)

        user = await self._find_user(subject)
        if user is None or not user.enabled:
            raise InvalidTokenError()

        if self._policy.revoke_superseded_tokens:
            await self._revoke(refresh_token)
        access = await self._issue_and_register(user, TokenKind.ACCESS)
        refresh = await self._issue_and_register(user, TokenKind.REFRESH)

        logger.info("tokens rotated", extra={"principal_id": user.id})
        return TokenPair(access=access, refresh=refresh)

    async def logout(self, token: str) -> None:
        await self._revoke(token)
        logger.info("token revoked on logout")

    async def forgot_password(
        self,
        email: Optional[str] = None,
        principal: Optional[AuthenticatedPrincipal] = None,
    ) -> None:
        """
        Email a reset handle ("<short-lived access token><code>") to the principal.

        The principal comes from the caller's identity when present, else from
        `email`. Unknown emails return quietly so accounts cannot be probed.
        """
        async with self._uow as tx:
            if principal is not None:
                user = await tx.users.get_by_id(principal.id)
            elif email:
                user = await tx.users.find_by_email(_normalize(email))
            else:
                raise BadRequestError("email is required")

        if user is None:
            logger.info("password reset requested for unknown account")
            return

        cooldown = self._policy.password_change_cooldown
        if user.changed_password_within(cooldown, self._clock()):
            raise RateLimitedError(
                "password was changed recently, wait before changing it again"
            )
        if not await self._reset_codes.throttle(
            str(user.email), int(cooldown.total_seconds())
        ):
            raise RateLimitedError("a reset was already requested, wait before retrying")

        code = await self._reset_codes.generate(str(user.email))
        token = self._codec.issue(
            str(user.email), TokenKind.ACCESS, self._policy.reset_token_ttl
        )
        handle = domain_services.build_reset_handle(token.token, code)
        link = f"{self._policy.reset_password_url}?code={handle}"
        try:
            await self._email.send(
                to=str(user.email),
                subject="Password reset",
                body=(
                    f'Follow <a href="{link}">this link</a> to reset your password.'
                    "<br><br><b>This link is personal. Do not share it.</b>"
                ),
                idempotency_key=domain_services.token_fingerprint(handle),
            )
        except EmailDeliveryError:
            await self._reset_codes.invalidate(str(user.email))
            await self._reset_codes.release_throttle(str(user.email))
            raise
        logger.info("password reset issued", extra={"principal_id": user.id})

    async def reset_password(self, handle: str, new_password: str) -> None:
        token, code = domain_services.split_reset_handle(handle)
        if await self._credentials.is_revoked(token):
            raise ForbiddenError("token revoked")
        subject = self._codec.verify(token, TokenKind.ACCESS)
        domain_services.check_password_strength(new_password)

        async with self._uow as tx:
            user = await tx.users.find_by_email(subject)
            if user is None:
                raise InvalidTokenError()

            depth = self._policy.password_history_depth
            retained = [user.password_hash, *user.password_history[: max(depth, 0)]]
            if self._passwords.matches_any(new_password, retained):
                raise PasswordReused()

            if not await self._reset_codes.matches(str(user.email), code):
                raise InvalidVerificationCode()

            user.change_password(
                self._passwords.hash(new_password), self._clock(), depth
            )
            await tx.users.save(user)
            # consume after the hash is staged; of two racing resets only one passes
            if not await self._reset_codes.check(str(user.email), code):
                raise InvalidVerificationCode()
            try:
                await tx.commit()
            except Exception:
                # code already spent, so a new handle must be requestable at once
                await self._reset_codes.release_throttle(str(user.email))
                raise

        await self._reset_codes.invalidate(str(user.email))
        await self._revoke(token)
        logger.info("password reset completed", extra={"principal_id": user.id})

    async def validate_code(self, email: str, code: str) -> None:
        """Confirm a mailbox with the code sent at registration and enable the account."""
        normalized = _normalize(email)
        async with self._uow as tx:
            user = await tx.users.find_by_email(normalized)
            if user is None:
                raise InvalidVerificationCode()
            if not await self._email_codes.check(normalized, code):
                raise InvalidVerificationCode()
            user.enable()
            await tx.users.save(user)
            await tx.commit()
        logger.info("email confirmed", extra={"principal_id": user.id})

    async def refresh_code(self, email: str) -> None:
        """Send a replacement confirmation code to a not-yet-enabled account."""
        normalized = _normalize(email)
        user = await self._find_user(normalized)
        if user is None:
            logger.info("confirmation code requested for unknown account")
            return
        if user.enabled:
            raise AlreadyEnabled()

        if not await self._email_codes.throttle(
            normalized, self._policy.resend_throttle_seconds
        ):
            raise RateLimitedError()
        await self._email_codes.invalidate(normalized)
        code = await self._email_codes.generate(normalized)
        try:
            await self._email.send(
                to=normalized,
                subject="New verification code",
                body=f"Your new verification code is: <b>{code}</b>",
                idempotency_key=domain_services.token_fingerprint(
                    f"confirm:{normalized}:{code}"
                ),
            )
        except EmailDeliveryError:
            await self._email_codes.invalidate(normalized)
            await self._email_codes.release_throttle(normalized)
            raise
        logger.info("confirmation code resent", extra={"principal_id": user.id})
