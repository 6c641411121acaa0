import pytest

from authkeeper.application.token_lifecycle import LifecyclePolicy, TokenLifecycleService
from authkeeper.domain.entities import User
from authkeeper.infrastructure.security.tokens import JwtTokenCodec
from tests.fakes import (
    FakeCodeStore,
    FakeCredentialCache,
    FakeEmailOK,
    FakePasswordHasher,
    FakeUoW,
)

TEST_SECRET = "test-secret-with-at-least-thirty-two-bytes!"
PASSWORD = "S3cret!pass"


@pytest.fixture()
def uow():
    return FakeUoW()


@pytest.fixture()
def credentials():
    return FakeCredentialCache()


@pytest.fixture()
def reset_codes():
    return FakeCodeStore(code="RsT123")


@pytest.fixture()
def email_codes():
    return FakeCodeStore(code="AbC123")


@pytest.fixture()
def email():
    return FakeEmailOK()


@pytest.fixture()
def passwords():
    return FakePasswordHasher()


@pytest.fixture()
def hash_password_stub():
    return lambda p: "hashed-" + p


@pytest.fixture()
def codec():
    return JwtTokenCodec(TEST_SECRET, issuer="authkeeper-test")


@pytest.fixture()
def active_user(uow) -> User:
    return uow.users.seed(
        User(
            email="alice@example.com",
            username="alice",
            password_hash="hashed-" + PASSWORD,
            enabled=True,
        )
    )


@pytest.fixture()
def make_service(uow, codec, credentials, reset_codes, email_codes, email, passwords):
    """Build the lifecycle service over the shared fakes, with policy overrides."""

    def _make(clock=None, email_port=None, **policy) -> TokenLifecycleService:
        kwargs = {}
        if clock is not None:
            kwargs["clock"] = clock
        return TokenLifecycleService(
            uow=uow,
            codec=codec,
            credentials=credentials,
            reset_codes=reset_codes,
            email_codes=email_codes,
            email=email_port or email,
            passwords=passwords,
            policy=LifecyclePolicy(**policy),
            **kwargs,
        )

    return _make


@pytest.fixture()
def service(make_service):
    return make_service()