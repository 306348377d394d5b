from typing import List

import httpx
import structlog

from safeportal.core.config import settings

logger = structlog.get_logger()


class EmailDeliveryError(Exception):
    def __init__(self, details: str):
        super().__init__(details)
        self.details = details


class EmailService:
    """Thin client for the Resend `POST /emails` API."""

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.RESEND_API_KEY and settings.NOTIFY_FROM_EMAIL)

    @staticmethod
    async def send(to: List[str], subject: str, text: str) -> None:
        payload = {
            "from": settings.NOTIFY_FROM_EMAIL,
            "to": to,
            "subject": subject,
            "text": text,
        }
        headers = {
            "Authorization": f"Bearer {settings.RESEND_API_KEY}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=settings.EMAIL_TIMEOUT_SECONDS) as client:
                resp = await client.post(settings.RESEND_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise EmailDeliveryError(str(e)) from e

        if not resp.is_success:
            raise EmailDeliveryError(resp.text)
        logger.info("email_sent", subject=subject, recipients=len(to))
