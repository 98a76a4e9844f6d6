"""
Account Entities: verified and unverified accounts.

An account passes through two stages:

1. Unverified: created from an email on an allowed domain. Partitioned by
   the hash of that email. Holds at most one verify session, used to
   deliver the activation captcha.
2. Account: created on activation. Partitioned by its engine-assigned id.
   Holds any number of verify sessions, one per VerifyVariant (currently
   only password reset).

The storage identity (``id`` / ``email_hash``) is passed to the constructor
and exposed read-only. It is set exactly once: at creation, or from the
engine's dimension key when a record is decoded.

Usage:
    pending = Unverified.new("alice@pkuschool.edu.cn")
    await pending.send_activation_captcha(transport)
    account = pending.activate(captcha, id=engine_id, name="Alice", password="...")

    await account.request_password_reset(transport)
    account.reset_password(captcha, "new password")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sms4.account.codec import Data, check_dims, decode_model, encode_model
from sms4.account.core import (
    AccountCore,
    UnverifiedCore,
    email_hash,
    hash_password,
    validate_email,
)
from sms4.account.schema import Permission, VerifyVariant
from sms4.account.tags import Tag, default_tags
from sms4.account.verify import Ext, VerifyCx, check, issue, request_verify
from sms4.config import Sms4Settings, settings as default_settings
from sms4.integrations.mailer import EmailTransport

logger = logging.getLogger(__name__)


class Account(Data):
    """A verified account."""

    def __init__(self, id: int, core: AccountCore) -> None:
        self._id = id
        self.core = core

    def __repr__(self) -> str:
        return f"<Account id={self._id} email={self.core.email}>"

    @classmethod
    def create(
        cls,
        id: int,
        email: str,
        name: str,
        password: str,
        tags: set[Tag] | None = None,
    ) -> Account:
        """Create a new account with the default permission tags."""
        core = AccountCore(
            email=email,
            name=name,
            password_hash=hash_password(password),
            tags=default_tags() if tags is None else tags,
        )
        logger.info("Account created: id=%d", id)
        return cls(id, core)

    # ── Delegated account-core accessors ───────────────────────

    @property
    def id(self) -> int:
        return self._id

    @property
    def email(self) -> str:
        return self.core.email

    @property
    def name(self) -> str:
        return self.core.name

    @property
    def tags(self) -> set[Tag]:
        return self.core.tags

    @property
    def ext(self) -> Ext:
        return self.core.ext

    def set_password(self, password: str) -> None:
        self.core.set_password(password)

    def verify_password(self, password: str) -> bool:
        return self.core.verify_password(password)

    def has_permission(self, required: Permission) -> bool:
        return self.core.has_permission(required)

    # ── Verify sessions ────────────────────────────────────────

    async def request_password_reset(
        self,
        transport: EmailTransport,
        now: datetime | None = None,
        settings: Sms4Settings | None = None,
    ) -> None:
        """
        Request to reset the password and email a captcha to the account.

        Raises:
            Throttled: If the last request was less than the cooldown ago.
            TransportError: If the email could not be sent.
        """
        await request_verify(
            self.ext, VerifyVariant.RESET_PASSWORD, self.email, transport, now, settings
        )

    def reset_password(self, captcha: str, new_password: str) -> None:
        """
        Reset the password if ``captcha`` matches the pending reset session.

        Raises:
            VerifySessionNotFound: If no reset was requested.
            CaptchaIncorrect: If the captcha is wrong.
        """
        self.ext.validate(VerifyVariant.RESET_PASSWORD, captcha)
        self.set_password(new_password)
        logger.info("Password reset: id=%d", self._id)

    # ── Storage ────────────────────────────────────────────────

    def dim(self, index: int) -> int:
        if index == 0:
            return self._id
        raise IndexError(f"Account has {self.DIMS} dims, got index {index}")

    def encode(self) -> bytes:
        return encode_model(self.core)

    @classmethod
    def decode(cls, version: int, dims: Sequence[int], buf: bytes) -> Account:
        check_dims(dims, cls.DIMS, "account")
        return cls(dims[0], decode_model(AccountCore, "account", version, buf))


class Unverified(Data):
    """An account awaiting email activation."""

    def __init__(self, email_hash: int, core: UnverifiedCore) -> None:
        self._email_hash = email_hash
        self.core = core

    def __repr__(self) -> str:
        return f"<Unverified email={self.core.email}>"

    @classmethod
    def new(cls, email: str, settings: Sms4Settings | None = None) -> Unverified:
        """
        Create an unverified account.

        The email is stored and hashed with its domain lowercased, so case
        variants of one address share a partition key.

        Raises:
            InvalidEmail: If the email is not on an allowed domain.
        """
        settings = settings or default_settings
        email = validate_email(email, settings.allowed_email_domains)
        return cls(email_hash(email), UnverifiedCore(email=email))

    @property
    def email(self) -> str:
        return self.core.email

    @property
    def email_hash(self) -> int:
        return self._email_hash

    @property
    def ext(self) -> VerifyCx | None:
        return self.core.ext

    async def send_activation_captcha(
        self,
        transport: EmailTransport,
        now: datetime | None = None,
        settings: Sms4Settings | None = None,
    ) -> None:
        """
        Request an activation captcha and email it.

        Raises:
            Throttled: If the last request was less than the cooldown ago.
            TransportError: If the email could not be sent.
        """
        variant = VerifyVariant.ACTIVATION
        self.core.ext = issue(self.core.ext, variant, now, settings)
        await self.core.ext.send_email(self.email, variant.label, transport, settings)

    def activate(self, captcha: str, *, id: int, name: str, password: str) -> Account:
        """
        Consume the activation session and build the verified account.

        Raises:
            VerifySessionNotFound: If no activation captcha was sent.
            CaptchaIncorrect: If the captcha is wrong.
        """
        check(self.core.ext, VerifyVariant.ACTIVATION, captcha)
        self.core.ext = None
        return Account.create(id, self.email, name, password)

    # ── Storage ────────────────────────────────────────────────

    def dim(self, index: int) -> int:
        if index == 0:
            return self._email_hash
        raise IndexError(f"Unverified has {self.DIMS} dims, got index {index}")

    def encode(self) -> bytes:
        return encode_model(self.core)

    @classmethod
    def decode(cls, version: int, dims: Sequence[int], buf: bytes) -> Unverified:
        check_dims(dims, cls.DIMS, "unverified account")
        return cls(dims[0], decode_model(UnverifiedCore, "unverified account", version, buf))
