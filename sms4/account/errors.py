"""
Account error types.

Recoverable conditions derive from AccountError and are expected to be
mapped to user-facing messages by the caller. UnsupportedSchemaVersion is
deliberately outside that hierarchy: it signals a deployment or migration
bug and must abort the operation.
"""

from __future__ import annotations

from datetime import timedelta

from sms4.account.schema import VerifyVariant

__all__ = [
    "AccountError",
    "InvalidEmail",
    "Throttled",
    "VerifySessionNotFound",
    "CaptchaIncorrect",
    "TransportError",
    "UnsupportedSchemaVersion",
    "RecordDecodeError",
]


class AccountError(Exception):
    """Base class for recoverable account-core failures."""


class InvalidEmail(AccountError, ValueError):
    """Raised when an address is malformed or outside the allowed domains."""

    def __init__(self, email: str, reason: str = "email domain is not allowed") -> None:
        super().__init__(f"invalid email {email!r}: {reason}")
        self.email = email
        self.reason = reason


class Throttled(AccountError):
    """Raised when a verify session is re-requested within the cooldown."""

    def __init__(self, remaining: timedelta) -> None:
        seconds = max(int(remaining.total_seconds()), 0)
        super().__init__(f"verify session requested too frequently, retry in {seconds}s")
        self.remaining = remaining


class VerifySessionNotFound(AccountError, LookupError):
    """Raised when validating a variant that has no pending session."""

    def __init__(self, variant: VerifyVariant) -> None:
        super().__init__(f"verify session not found: {variant.value}")
        self.variant = variant


class CaptchaIncorrect(AccountError):
    """Raised when the candidate captcha does not match the stored one."""

    def __init__(self) -> None:
        super().__init__("captcha incorrect")


class TransportError(AccountError):
    """Raised by an email transport when delivery fails."""


class UnsupportedSchemaVersion(RuntimeError):
    """A stored record carries a version no decoder exists for."""

    def __init__(self, version: int, entity: str) -> None:
        super().__init__(f"unsupported data version {version} for {entity}")
        self.version = version
        self.entity = entity


class RecordDecodeError(ValueError):
    """A stored payload could not be deserialized."""
