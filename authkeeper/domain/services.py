# authkeeper/domain/services.py
from __future__ import annotations

import base64
import hashlib
import hmac
import os
import re
import secrets
import string

from authkeeper.domain.errors import MalformedResetHandle, WeakPassword

CODE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits

# Reset handles are "<token><code>"; parsing depends on this length.
# Changing it breaks every handle already sent by email.
RESET_CODE_LENGTH = 6

_PASSWORD_PATTERN = re.compile(
    r"^(?=.*\d)(?=.*[a-z])(?=.*[A-Z])(?=.*[@$!%*?&.])[0-9a-zA-Z@$!%*?&.]{8,}$"
)


def generate_code(length: int = RESET_CODE_LENGTH) -> str:
    """Random alphanumeric code from a CSPRNG."""
    if length <= 0:
        raise ValueError("code length must be positive")
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _sha256_salt_plus_code(salt: bytes, code: str) -> bytes:
    h = hashlib.sha256()
    h.update(salt)
    h.update(code.encode("utf-8"))
    return h.digest()


def make_code_digest(code: str) -> tuple[str, str]:
    """
    Return (salt_b64, digest_b64) where digest = SHA256(salt || code).
    """
    salt = os.urandom(16)
    digest = _sha256_salt_plus_code(salt, code)
    return (
        base64.b64encode(salt).decode("utf-8"),
        base64.b64encode(digest).decode("utf-8"),
    )


def code_digest_b64(code: str, salt_b64: str) -> str:
    """Digest of `code` under an already stored salt."""
    salt = base64.b64decode(salt_b64.encode("utf-8"))
    return base64.b64encode(_sha256_salt_plus_code(salt, code)).decode("utf-8")


def verify_code_digest(code: str, salt_b64: str, digest_b64: str) -> bool:
    """
    Verify code against (salt_b64, digest_b64) from make_code_digest().
    """
    try:
        salt = base64.b64decode(salt_b64.encode("utf-8"))
        expected = base64.b64decode(digest_b64.encode("utf-8"))
    except ValueError:
        return False

    calc = _sha256_salt_plus_code(salt, code)
    return hmac.compare_digest(calc, expected)


def build_reset_handle(token: str, code: str) -> str:
    if len(code) != RESET_CODE_LENGTH:
        raise ValueError(f"reset code must be {RESET_CODE_LENGTH} characters")
    return token + code


def split_reset_handle(handle: str) -> tuple[str, str]:
    """Split "<token><code>" into (token, code) by the fixed code length."""
    handle = (handle or "").strip()
    if len(handle) <= RESET_CODE_LENGTH:
        raise MalformedResetHandle()
    return handle[:-RESET_CODE_LENGTH], handle[-RESET_CODE_LENGTH:]


def check_password_strength(password: str) -> None:
    if not password or not _PASSWORD_PATTERN.match(password):
        raise WeakPassword()


def token_fingerprint(token: str) -> str:
    """Stable, non-reversible cache key fragment for a token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
