import logging
from typing import Callable

import authkeeper.domain.services as domain_services
from authkeeper.domain.entities import Role, User
from authkeeper.domain.errors import ConflictError
from authkeeper.domain.ports.email_port import EmailPort
from authkeeper.domain.ports.unit_of_work import UnitOfWorkPort
from authkeeper.domain.ports.verification_codes import VerificationCodeStorePort

logger = logging.getLogger(__name__)


async def register_user(
    uow: UnitOfWorkPort,
    email_codes: VerificationCodeStorePort,
    email_port: EmailPort,
    email: str,
    password: str,
    hash_password: Callable[[str], str],
    username: str | None = None,
    role: str = Role.USER.value,
) -> User:
    normalized_email = email.strip().lower()
    domain_services.check_password_strength(password)
    parsed_role = Role.parse(role)

    async with uow as transaction:
        if await transaction.users.find_by_email(normalized_email):
            raise ConflictError()
        user = await transaction.users.create(
            User(
                email=normalized_email,
                username=username,
                password_hash=hash_password(password),
                roles={parsed_role},
                enabled=False,
            )
        )
        # the code is stored before commit so a cache outage leaves no orphan account
        code = await email_codes.generate(normalized_email)
        await transaction.commit()

    logger.info("user registered", extra={"principal_id": user.id})
    await email_port.send(
        to=normalized_email,
        subject="Your verification code",
        body=f"Your verification code is: <b>{code}</b>",
        idempotency_key=domain_services.token_fingerprint(f"confirm:{normalized_email}:{code}"),
    )
    return user
