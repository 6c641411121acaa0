class DomainError(Exception):
    """Base class for all domain-level errors.

    Every subclass carries the HTTP status and stable error code the
    presentation layer renders it with.
    """

    status_code: int = 500
    code: str = "server_error"
    default_message: str = "internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidTokenError(DomainError):
    """Bad signature, wrong issuer, wrong kind, or expired token."""

    status_code = 401
    code = "unauthorized"
    default_message = "invalid or expired token"


class InvalidCredentials(InvalidTokenError):
    """Email/password pair did not authenticate."""

    default_message = "invalid credentials"


class AccountDisabled(InvalidTokenError):
    """Correct password, but the email was never confirmed."""

    default_message = "account not verified"


class ForbiddenError(DomainError):
    """Missing bearer token on a protected route, or a revoked token."""

    status_code = 403
    code = "forbidden"
    default_message = "forbidden"


class NotFoundError(DomainError):
    status_code = 404
    code = "not_found"
    default_message = "not found"


class BadRequestError(DomainError):
    status_code = 400
    code = "bad_request"
    default_message = "bad request"


class RateLimitedError(BadRequestError):
    """Action attempted again inside its cool-down window."""

    code = "rate_limited"
    default_message = "please wait before trying again"


class ConflictError(BadRequestError):
    """User with the given identity already exists."""

    code = "conflict"
    default_message = "user already exists"


class PasswordReused(BadRequestError):
    default_message = "password already used, choose a different one"


class WeakPassword(BadRequestError):
    default_message = (
        "password must have at least 8 characters, one uppercase letter, "
        "one lowercase letter, one digit and one special character"
    )


class InvalidVerificationCode(BadRequestError):
    default_message = "verification code expired or invalid"


class MalformedResetHandle(BadRequestError):
    default_message = "malformed reset code"


class AlreadyEnabled(BadRequestError):
    default_message = "user already enabled"


class InvalidRole(BadRequestError):
    default_message = "unknown role"


class TransientError(DomainError):
    """A collaborator (cache, email) could not be reached. Never means 'allow'."""

    status_code = 500
    code = "server_error"
    default_message = "temporary failure, try again later"


class CacheUnavailableError(TransientError):
    default_message = "credential cache unavailable"


class EmailDeliveryError(TransientError):
    default_message = "email delivery failed"


class SigningError(DomainError):
    """Token signer misconfiguration. Raised at startup, not per call."""

    default_message = "token signer misconfigured"
