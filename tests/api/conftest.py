import pytest
from fastapi.testclient import TestClient

from authkeeper.domain.entities import User
from authkeeper.infrastructure.security.tokens import JwtTokenCodec
from authkeeper.main import create_app
from authkeeper.presentation.dependencies import (
    get_credential_cache,
    get_email_codes,
    get_email_port,
    get_password_hasher,
    get_reset_codes,
    get_token_codec,
    get_uow,
)
from tests.fakes import (
    FakeCodeStore,
    FakeCredentialCache,
    FakeEmailOK,
    FakePasswordHasher,
    FakeUoW,
    FakeUserRepo,
)

PASSWORD = "S3cret!pass"


@pytest.fixture()
def app_and_deps():
    app = create_app()
    deps = {
        "users": FakeUserRepo(),
        "credentials": FakeCredentialCache(),
        "reset_codes": FakeCodeStore(code="RsT123"),
        "email_codes": FakeCodeStore(code="AbC123"),
        "email": FakeEmailOK(),
        "codec": JwtTokenCodec(
            "api-test-secret-with-at-least-thirty-two-bytes", issuer="authkeeper"
        ),
    }

    app.dependency_overrides[get_uow] = lambda: FakeUoW(deps["users"])
    app.dependency_overrides[get_credential_cache] = lambda: deps["credentials"]
    app.dependency_overrides[get_reset_codes] = lambda: deps["reset_codes"]
    app.dependency_overrides[get_email_codes] = lambda: deps["email_codes"]
    app.dependency_overrides[get_email_port] = lambda: deps["email"]
    app.dependency_overrides[get_password_hasher] = lambda: FakePasswordHasher()
    app.dependency_overrides[get_token_codec] = lambda: deps["codec"]

    try:
        yield app, deps
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _ = app_and_deps
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def deps(app_and_deps):
    _, deps = app_and_deps
    return deps


@pytest.fixture()
def active_user(deps) -> User:
    return deps["users"].seed(
        User(
            email="alice@example.com",
            username="alice",
            password_hash="hashed-" + PASSWORD,
            enabled=True,
        )
    )


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def login(client: TestClient, email: str = "alice@example.com", password: str = PASSWORD) -> dict:
    r = client.post("/v1/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()
