"""
Verify Sessions: captcha-based email verification gated by a cooldown.

A verify session proves control of an email address for one purpose
(VerifyVariant). Its lifecycle per (account, variant):

    Absent --request--> Pending --request (after cooldown)--> Pending
    Pending --validate (correct captcha)--> Absent

- A request within the cooldown window raises Throttled and leaves the
  pending captcha untouched.
- A wrong captcha raises CaptchaIncorrect and leaves the session in place.
- A correct captcha consumes the session: the same captcha never validates
  twice.
- There is no expiry sweep. Stale sessions are overwritten by the next
  request or consumed by validation.

The session is updated in memory BEFORE the captcha email is sent. If
delivery fails the refreshed session stays pending and the TransportError
propagates unchanged; a retry is subject to the same cooldown.

No locking happens here. The storage engine grants exclusive access to one
account record for the duration of a request or validation.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, Field

from sms4.account.errors import CaptchaIncorrect, Throttled, VerifySessionNotFound
from sms4.account.schema import VerifyVariant
from sms4.config import Sms4Settings, settings as default_settings
from sms4.integrations.mailer import EmailTransport, build_captcha_message

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(minutes=10)
DEFAULT_CAPTCHA_LENGTH = 6


def generate_captcha(length: int = DEFAULT_CAPTCHA_LENGTH) -> str:
    """Generate a numeric captcha with a CSPRNG."""
    if length < 1:
        raise ValueError(f"captcha length must be positive, got {length}")
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(now: datetime | None) -> datetime:
    """Default to the current time. Naive datetimes are taken as UTC."""
    if now is None:
        return _utcnow()
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


class VerifyCx(BaseModel):
    """A pending verify session."""

    captcha: str
    created_at: datetime
    last_request_at: datetime

    @classmethod
    def new(
        cls,
        now: datetime | None = None,
        captcha_length: int = DEFAULT_CAPTCHA_LENGTH,
    ) -> VerifyCx:
        now = _as_utc(now)
        return cls(
            captcha=generate_captcha(captcha_length),
            created_at=now,
            last_request_at=now,
        )

    def update(
        self,
        now: datetime | None = None,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        captcha_length: int = DEFAULT_CAPTCHA_LENGTH,
    ) -> None:
        """
        Regenerate the captcha if the cooldown has elapsed.

        Exactly at the cooldown boundary the refresh succeeds. A naive
        ``now`` is taken as UTC.

        Raises:
            Throttled: If less than ``cooldown`` passed since the last request.
        """
        now = _as_utc(now)
        elapsed = now - _as_utc(self.last_request_at)
        if elapsed < cooldown:
            raise Throttled(cooldown - elapsed)
        self.captcha = generate_captcha(captcha_length)
        self.last_request_at = now

    def matches(self, captcha: str) -> bool:
        return hmac.compare_digest(self.captcha.encode(), captcha.encode())

    async def send_email(
        self,
        to: str,
        label: str,
        transport: EmailTransport,
        settings: Sms4Settings | None = None,
    ) -> None:
        """Deliver this session's captcha. TransportError propagates as-is."""
        message = build_captcha_message(to, label, self.captcha, settings)
        await transport.send(message)


def issue(
    cx: VerifyCx | None,
    variant: VerifyVariant,
    now: datetime | None = None,
    settings: Sms4Settings | None = None,
) -> VerifyCx:
    """
    Create a session if ``cx`` is absent, otherwise refresh it in place.

    Raises:
        Throttled: If the existing session was requested within the cooldown.
    """
    settings = settings or default_settings
    if cx is None:
        logger.info("Verify session created: variant=%s", variant.value)
        return VerifyCx.new(now, settings.captcha_length)
    try:
        cx.update(now, settings.verify_cooldown, settings.captcha_length)
    except Throttled:
        logger.info("Verify session throttled: variant=%s", variant.value)
        raise
    logger.info("Verify session refreshed: variant=%s", variant.value)
    return cx


def check(cx: VerifyCx | None, variant: VerifyVariant, captcha: str) -> None:
    """
    Check ``captcha`` against a pending session. The caller removes the
    session once this returns.

    Raises:
        VerifySessionNotFound: If ``cx`` is absent.
        CaptchaIncorrect: If the captcha does not match.
    """
    if cx is None:
        raise VerifySessionNotFound(variant)
    if not cx.matches(captcha):
        logger.info("Captcha incorrect: variant=%s", variant.value)
        raise CaptchaIncorrect()
    logger.info("Verify session consumed: variant=%s", variant.value)


class Ext(BaseModel):
    """External data of a verified account: its verify sessions."""

    verifies: dict[VerifyVariant, VerifyCx] = Field(default_factory=dict)

    def get(self, variant: VerifyVariant) -> VerifyCx | None:
        return self.verifies.get(variant)

    def request(
        self,
        variant: VerifyVariant,
        now: datetime | None = None,
        settings: Sms4Settings | None = None,
    ) -> VerifyCx:
        """Create or refresh the session for ``variant``. See ``issue``."""
        cx = issue(self.verifies.get(variant), variant, now, settings)
        self.verifies[variant] = cx
        return cx

    def validate(self, variant: VerifyVariant, captcha: str) -> None:
        """Validate and consume the session for ``variant``. See ``check``."""
        check(self.verifies.get(variant), variant, captcha)
        del self.verifies[variant]


async def request_verify(
    ext: Ext,
    variant: VerifyVariant,
    to: str,
    transport: EmailTransport,
    now: datetime | None = None,
    settings: Sms4Settings | None = None,
) -> None:
    """
    Request a verify session and email its captcha to ``to``.

    Raises:
        Throttled: If requested again within the cooldown.
        TransportError: If delivery fails. The session stays updated.
    """
    cx = ext.request(variant, now, settings)
    await cx.send_email(to, variant.label, transport, settings)
