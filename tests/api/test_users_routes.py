from fastapi.testclient import TestClient

from authkeeper.presentation.dependencies import get_credential_cache
from tests.api.conftest import bearer, login
from tests.fakes import FakeErroredCredentialCache


def test_me_regular_view_by_default(client: TestClient, active_user):
    tokens = login(client)

    r = client.get("/v1/users/me", headers=bearer(tokens["access_token"]))
    assert r.status_code == 200, r.text
    assert r.json() == {
        "id": active_user.id,
        "username": "alice",
        "enabled": True,
        "email": "alice@example.com",
        "roles": ["USER"],
    }


def test_me_basic_and_detailed_views(client: TestClient, active_user):
    tokens = login(client)

    r = client.get("/v1/users/me", params={"view": "basic"}, headers=bearer(tokens["access_token"]))
    assert r.json() == {"id": active_user.id, "username": "alice", "enabled": True}

    r = client.get("/v1/users/me", params={"view": "detailed"}, headers=bearer(tokens["access_token"]))
    body = r.json()
    assert body["email"] == "alice@example.com"
    assert "password_hash" not in body


def test_me_missing_authorization_header(client: TestClient):
    r = client.get("/v1/users/me")
    assert r.status_code == 403
    assert r.json()["error"]["message"] == "token not found"


def test_me_invalid_token(client: TestClient):
    r = client.get("/v1/users/me", headers=bearer("nope"))
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "invalid or expired token"


def test_me_with_refresh_token_is_rejected(client: TestClient, active_user):
    tokens = login(client)
    r = client.get("/v1/users/me", headers=bearer(tokens["refresh_token"]))
    assert r.status_code == 401


def test_me_denied_when_cache_is_down(client: TestClient, active_user):
    tokens = login(client)
    client.app.dependency_overrides[get_credential_cache] = FakeErroredCredentialCache

    r = client.get("/v1/users/me", headers=bearer(tokens["access_token"]))
    assert r.status_code == 500
    assert r.json()["error"] == {
        "code": "server_error",
        "message": "Redis down",
        "path": "/v1/users/me",
    }
