"""
Captcha Mailer: SMTP delivery of verify-session captchas.

The account core only depends on the EmailTransport protocol: an object
with an awaitable ``send(message)`` that raises TransportError on failure.
SmtpTransport is the production implementation. smtplib is blocking, so
each delivery runs in a worker thread and the caller awaits it.

Timeouts are owned by the transport (``settings.smtp_timeout_seconds``).

Usage:
    transport = SmtpTransport()
    await account.request_password_reset(transport)
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from sms4.account.errors import TransportError
from sms4.config import Sms4Settings, settings as default_settings

logger = logging.getLogger(__name__)


class EmailTransport(Protocol):
    """Anything that can deliver an email message asynchronously."""

    async def send(self, message: EmailMessage) -> None:
        ...


def build_captcha_message(
    to: str,
    label: str,
    captcha: str,
    settings: Sms4Settings | None = None,
) -> EmailMessage:
    """
    Build the email carrying a captcha.

    Args:
        to: Recipient address.
        label: Human-readable name of the flow (e.g., "reset password").
        captcha: The code the recipient must submit back.
        settings: Sender configuration. Defaults to the global settings.

    Returns:
        A ready-to-send EmailMessage.
    """
    settings = settings or default_settings

    message = EmailMessage()
    message["From"] = settings.mail_from
    message["To"] = to
    message["Subject"] = f"Your captcha for {label}"
    message.set_content(
        f"Your captcha for {label} is: {captcha}\n\n"
        f"The captcha can be used once. You may request a new one after "
        f"{settings.verify_cooldown_minutes} minutes.\n"
    )
    return message


class SmtpTransport:
    """EmailTransport backed by an SMTP relay."""

    def __init__(self, settings: Sms4Settings | None = None) -> None:
        self.settings = settings or default_settings

    async def send(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self._send_blocking, message)

    def _send_blocking(self, message: EmailMessage) -> None:
        cfg = self.settings
        try:
            with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.smtp_timeout_seconds) as server:
                if cfg.smtp_starttls:
                    server.starttls()
                if cfg.smtp_username:
                    server.login(cfg.smtp_username, cfg.smtp_password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning(
                "SMTP delivery failed: host=%s to=%s error=%s",
                cfg.smtp_host, message["To"], exc,
            )
            raise TransportError(f"failed to send email to {message['To']}: {exc}") from exc

        logger.info("Email sent: to=%s subject=%s", message["To"], message["Subject"])
