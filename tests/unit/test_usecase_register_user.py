import pytest

from authkeeper.application.register_user import register_user
from authkeeper.domain.entities import Role, User
from authkeeper.domain.errors import CacheUnavailableError, ConflictError, InvalidRole, WeakPassword
from tests.fakes import FakeCodeStore


class FakeErroredCodeStore(FakeCodeStore):
    async def generate(self, email: str) -> str:
        raise CacheUnavailableError("Redis down")


@pytest.mark.asyncio
async def test_register_user_happy_path(uow, email_codes, email, hash_password_stub):
    user = await register_user(
        uow=uow,
        email_codes=email_codes,
        email_port=email,
        email=" Jeremy@Example.COM ",
        password="S3cret!pass",
        hash_password=hash_password_stub,
        username="jeremy",
    )

    assert user.email == "jeremy@example.com"
    assert user.enabled is False
    assert user.roles == {Role.USER}

    stored = await uow.users.find_by_email("jeremy@example.com")
    assert stored.password_hash == "hashed-S3cret!pass"
    assert stored.username == "jeremy"
    assert email_codes.codes == {"jeremy@example.com": "AbC123"}
    assert uow.committed is True

    assert len(email.calls) == 1
    assert email.calls[0]["to"] == "jeremy@example.com"
    assert "AbC123" in email.calls[0]["body"]


@pytest.mark.asyncio
async def test_register_user_duplicate_email(uow, email_codes, email, hash_password_stub):
    uow.users.seed(User(email="jeremy@example.com"))

    with pytest.raises(ConflictError):
        await register_user(
            uow=uow,
            email_codes=email_codes,
            email_port=email,
            email="JEREMY@example.com",
            password="S3cret!pass",
            hash_password=hash_password_stub,
        )

    assert uow.committed is False
    assert email.calls == []


@pytest.mark.asyncio
async def test_register_user_rejects_weak_password_and_unknown_role(
    uow, email_codes, email, hash_password_stub
):
    with pytest.raises(WeakPassword):
        await register_user(
            uow=uow,
            email_codes=email_codes,
            email_port=email,
            email="a@example.com",
            password="weak",
            hash_password=hash_password_stub,
        )
    with pytest.raises(InvalidRole):
        await register_user(
            uow=uow,
            email_codes=email_codes,
            email_port=email,
            email="a@example.com",
            password="S3cret!pass",
            hash_password=hash_password_stub,
            role="root",
        )

    assert uow.users.by_email == {}


@pytest.mark.asyncio
async def test_register_user_error_in_code_store(uow, email, hash_password_stub):
    with pytest.raises(CacheUnavailableError, match="Redis down"):
        await register_user(
            uow=uow,
            email_codes=FakeErroredCodeStore(),
            email_port=email,
            email=" Jeremy@Example.COM ",
            password="S3cret!pass",
            hash_password=hash_password_stub,
        )

    assert email.calls == []
    assert uow.committed is False
    assert uow.rolled_back is True
