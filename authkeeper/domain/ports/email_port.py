from __future__ import annotations

from typing import Protocol


class EmailPort(Protocol):
    """
    Outbound mail for verification codes and reset links.

    Bodies are HTML. Delivery is synchronous from the flow's point of view:
    a failure raises EmailDeliveryError and the flow undoes what it stored.
    Each message carries an `idempotency_key` derived from its code, so a
    relay that honours the key sends a retried message once.
    """

    async def send(
        self,
        *,
        to: str,
        subject: str,
        body: str,
        idempotency_key: str | None = None,
    ) -> None: ...
