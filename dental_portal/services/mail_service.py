from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from dental_portal.core.config import Settings

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Reset your password"


def _reset_body(reset_link: str, expires_minutes: int) -> str:
    return (
        "<p>Click the link below to reset your password:</p>"
        f'<a href="{reset_link}">{reset_link}</a>'
        f"<p>This link expires in {int(expires_minutes)} minutes.</p>"
    )


class SmtpMailer:
    """Sends password reset links over SMTP (STARTTLS by default)."""

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: str,
        starttls: bool = True,
        expires_minutes: int = 60,
        timeout: int = 20,
    ):
        self.host = host
        self.port = int(port)
        self.username = username
        self.password = password
        self.sender = sender
        self.starttls = starttls
        self.expires_minutes = expires_minutes
        self.timeout = timeout

    def send(self, email: str, reset_link: str) -> None:
        msg = EmailMessage()
        msg["Subject"] = RESET_SUBJECT
        msg["From"] = self.sender
        msg["To"] = email
        msg.set_content(f"Reset your password: {reset_link}")
        msg.add_alternative(_reset_body(reset_link, self.expires_minutes), subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(msg)
        logger.info("Sent password reset email")


class LogMailer:
    """Development mailer: writes the reset link to the log instead of sending it."""

    def send(self, email: str, reset_link: str) -> None:
        logger.warning("SMTP not configured; password reset link for %s: %s", email, reset_link)


def build_mailer(settings: Settings):
    if settings.SMTP_HOST:
        return SmtpMailer(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            sender=settings.SMTP_FROM,
            starttls=settings.SMTP_STARTTLS,
            expires_minutes=settings.RESET_TOKEN_EXPIRE_MINUTES,
        )
    return LogMailer()
