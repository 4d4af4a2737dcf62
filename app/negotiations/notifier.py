import logging
from typing import Optional, Protocol

import httpx

from app.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    async def deliver(self, to: str, subject: str, body: str, metadata: dict) -> None: ...

    async def aclose(self) -> None: ...


class WebhookEmailSender:
    """Hands outgoing negotiation emails to the email automation webhook.

    Delivery itself happens downstream; a non-2xx response or a timeout means
    the webhook did not take the message and surfaces as ServiceUnavailable.
    One connection pool is shared by every delivery until aclose().
    """

    def __init__(self, webhook_url: str, secret: Optional[str] = None, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.secret = secret
        self.client = httpx.AsyncClient(timeout=timeout)

    async def deliver(self, to: str, subject: str, body: str, metadata: dict) -> None:
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["x-automation-secret"] = self.secret
        payload = {"to": to, "subject": subject, "body": body, **metadata}

        try:
            response = await self.client.post(self.webhook_url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Email webhook delivery to %s failed: %s", to, exc)
            raise ServiceUnavailableError("Email service") from exc

        logger.info("Email for %s handed to webhook (subject=%r)", to, subject)

    async def aclose(self) -> None:
        await self.client.aclose()


class LogOnlyEmailSender:
    """Used when EMAIL_WEBHOOK_URL is unset: logs the email instead of sending it."""

    async def deliver(self, to: str, subject: str, body: str, metadata: dict) -> None:
        logger.info("Email webhook not configured; skipping delivery to %s (subject=%r)", to, subject)

    async def aclose(self) -> None:
        pass
