from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from authkeeper.domain.errors import EmailDeliveryError
from authkeeper.domain.ports.email_port import EmailPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 2  # total tries, first one included
    base_delay: float = 0.2  # seconds
    max_delay: float = 2.0

    def delay(self, failed_attempts: int) -> float:
        # base * 2**(n-1), capped
        return min(self.max_delay, self.base_delay * (2 ** (failed_attempts - 1)))


class _Retryable(Exception):
    """Transport failure or 5xx: the relay may not have taken the message."""


class HttpSmtpEmailAdapter(EmailPort):
    """
    Delivers HTML mail through an HTTP relay exposing POST /send.

    Retries only when the message carries an idempotency key, so a relay that
    already accepted it can drop the duplicate. 4xx answers are final.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
        send_path: str = "/send",
        retry: RetryPolicy = RetryPolicy(),
    ) -> None:
        self._url = base_url.rstrip("/") + "/" + send_path.lstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._retry = retry

    async def _post_once(self, payload: dict, headers: Dict[str, str]) -> None:
        try:
            resp = await self._client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise _Retryable(f"SMTP HTTP error: {e}") from e
        if resp.is_success:
            return
        message = f"SMTP responded {resp.status_code}: {resp.text[:200]}"
        if resp.status_code >= 500:
            raise _Retryable(message)
        logger.warning("email relay rejected message", extra={"status_code": resp.status_code})
        raise EmailDeliveryError(message)

    async def send(
        self,
        *,
        to: str,
        subject: str,
        body: str,
        idempotency_key: str | None = None,
    ) -> None:
        headers: Dict[str, str] = {}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        payload = {"to": to, "subject": subject, "body": body, "html": True}

        attempts = self._retry.attempts if idempotency_key else 1
        for attempt in range(1, attempts + 1):
            try:
                await self._post_once(payload, headers)
                return
            except _Retryable as e:
                logger.warning(
                    "email relay unavailable",
                    extra={"attempt": attempt, "max_attempts": attempts, "error": str(e)},
                )
                if attempt == attempts:
                    raise EmailDeliveryError(str(e)) from e.__cause__
                await asyncio.sleep(self._retry.delay(attempt))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
