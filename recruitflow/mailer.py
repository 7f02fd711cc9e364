import logging
from dataclasses import dataclass

import httpx

from recruitflow.config import Settings
from recruitflow.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str


@dataclass(frozen=True)
class DeliveryReceipt:
    id: str
    to: str


class ResendEmailSender:
    """
    Sends transactional email through the Resend REST API.
    """

    def __init__(self, settings: Settings, http_client: httpx.Client | None = None):
        self.api_key = settings.RESEND_API_KEY
        self.api_url = settings.RESEND_API_URL
        self.sender = settings.EMAIL_FROM
        self.http_client = http_client or httpx.Client(timeout=settings.EMAIL_TIMEOUT_SEC, trust_env=False)

    def send(self, message: EmailMessage) -> DeliveryReceipt:
        if not self.api_key:
            raise ConfigurationError("RESEND_API_KEY is not configured")

        payload = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        try:
            response = self.http_client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as exc:
            logger.exception("Email request to %s failed", message.to)
            raise UpstreamError("Could not reach the email service") from exc

        if response.status_code >= 400:
            logger.error("Email service rejected message to %s (%s): %s", message.to, response.status_code, response.text)
            raise UpstreamError(f"Email service returned {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        receipt_id = body.get("id") if isinstance(body, dict) else None
        if not receipt_id:
            raise UpstreamError("Email service returned no delivery id")

        logger.info("Email %s sent to %s", receipt_id, message.to)
        return DeliveryReceipt(id=str(receipt_id), to=message.to)

    def close(self) -> None:
        self.http_client.close()
