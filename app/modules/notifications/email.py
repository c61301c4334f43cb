"""Outbound email with a delivery log."""

from datetime import UTC, datetime

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.logging import get_logger
from app.modules.notifications.models import EmailLog

logger = get_logger(__name__)


class EmailService:
    """Sends email through the configured provider and logs each attempt.

    The log row is added to the caller's session; the caller commits.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def send(self, to_email: str, subject: str, body: str, email_type: str) -> bool:
        """Send one plain-text email. Returns True if the provider accepted it."""
        log = EmailLog(
            to_email=to_email,
            subject=subject,
            body=body,
            from_email=settings.email_from_address,
            from_name=settings.email_from_name,
            email_type=email_type,
            is_sent=False,
        )
        self.db.add(log)

        if settings.email_provider == "console":
            logger.info("email_console", to=to_email, subject=subject, email_type=email_type)
            success, error = True, None
        elif settings.email_provider == "sendgrid":
            success, error = await self._send_via_sendgrid(to_email, subject, body)
        else:
            success, error = await self._send_via_mailgun(to_email, subject, body)

        log.is_sent = success
        log.error_message = error
        if success:
            log.sent_at = datetime.now(UTC)
        return success

    async def send_verification_email(self, to_email: str, username: str, token: str) -> bool:
        link = f"{settings.frontend_url.rstrip('/')}/verify-email?token={token}"
        body = (
            f"Hello, {username}!\n\n"
            f"Please confirm your email address by opening this link:\n{link}\n\n"
            f"The link is valid for {settings.email_verification_token_hours} hours."
        )
        return await self.send(to_email, "Confirm your email", body, "email_verification")

    async def _send_via_sendgrid(
        self, to_email: str, subject: str, body: str
    ) -> tuple[bool, str | None]:
        """Send email via SendGrid API."""
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(
                    "https://api.sendgrid.com/v3/mail/send",
                    headers={
                        "Authorization": f"Bearer {settings.email_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "personalizations": [{"to": [{"email": to_email}]}],
                        "from": {
                            "email": settings.email_from_address,
                            "name": settings.email_from_name,
                        },
                        "subject": subject,
                        "content": [{"type": "text/plain", "value": body}],
                    },
                )
        except httpx.HTTPError as e:
            logger.exception("sendgrid_exception", error=str(e))
            return False, str(e)

        if response.status_code in (200, 202):
            return True, None

        logger.error("sendgrid_error", status=response.status_code, body=response.text)
        return False, f"SendGrid returned {response.status_code}"

    async def _send_via_mailgun(
        self, to_email: str, subject: str, body: str
    ) -> tuple[bool, str | None]:
        """Send email via Mailgun API."""
        domain = settings.email_from_address.split("@")[1]
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(
                    f"https://api.mailgun.net/v3/{domain}/messages",
                    auth=("api", settings.email_api_key),
                    data={
                        "from": f"{settings.email_from_name} <{settings.email_from_address}>",
                        "to": to_email,
                        "subject": subject,
                        "text": body,
                    },
                )
        except httpx.HTTPError as e:
            logger.exception("mailgun_exception", error=str(e))
            return False, str(e)

        if response.status_code == 200:
            return True, None

        logger.error("mailgun_error", status=response.status_code, body=response.text)
        return False, f"Mailgun returned {response.status_code}"
