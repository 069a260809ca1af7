"""
Transactional e-mail.

Messages are plain-text ``EmailMessage`` objects delivered over SMTP.
Delivery runs in a worker thread so the event loop is not blocked.
Every failure, including a missing SMTP configuration, surfaces as
``UpstreamError``; callers decide whether that failure matters.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from ..core.config import Settings
from ..core.errors import UpstreamError

logger = logging.getLogger(__name__)

WELCOME_TEMPLATE = """Hi {full_name},

Welcome to MB Events! Your account is ready.

Sign in here: {client_url}

The MB Events team
"""

RESET_TEMPLATE = """Hi {full_name},

We received a request to reset your MB Events password.
Use the link below within {minutes} minutes:

{reset_url}

If you did not ask for this, you can ignore this e-mail.
"""


class NotificationService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def send_welcome(self, email: str, full_name: str, client_url: str) -> None:
        body = WELCOME_TEMPLATE.format(full_name=full_name, client_url=client_url)
        await self.send(email, "Welcome to MB Events", body)

    async def send_password_reset(self, email: str, full_name: str, reset_url: str) -> None:
        body = RESET_TEMPLATE.format(
            full_name=full_name,
            reset_url=reset_url,
            minutes=self.settings.reset_token_expire_minutes,
        )
        await self.send(email, "Reset your MB Events password", body)

    async def send(self, to: str, subject: str, body: str) -> None:
        if not self.settings.smtp_host:
            raise UpstreamError("Mail server is not configured")
        message = EmailMessage()
        message["From"] = self.settings.mail_sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise UpstreamError(f"Could not send e-mail to {to}") from exc
        logger.info("Sent '%s' e-mail to %s", subject, to)

    def _deliver(self, message: EmailMessage) -> None:
        s = self.settings
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=30) as smtp:
            if s.smtp_use_tls:
                smtp.starttls()
            if s.smtp_user:
                smtp.login(s.smtp_user, s.smtp_password)
            smtp.send_message(message)
