"""Shared fixtures for the account-core tests."""

from __future__ import annotations

from datetime import datetime, timezone
from email.message import EmailMessage

import pytest

from sms4.account.errors import TransportError
from sms4.config import Sms4Settings


class RecordingTransport:
    """EmailTransport that keeps every message instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.sent.append(message)


class FailingTransport:
    """EmailTransport whose every delivery fails."""

    def __init__(self) -> None:
        self.attempts = 0

    async def send(self, message: EmailMessage) -> None:
        self.attempts += 1
        raise TransportError("connection refused")


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def failing_transport() -> FailingTransport:
    return FailingTransport()


@pytest.fixture
def settings() -> Sms4Settings:
    return Sms4Settings(
        _env_file=None,
        mail_from="SMS4 <noreply@pkuschool.edu.cn>",
        verify_cooldown_minutes=10,
        captcha_length=6,
    )


@pytest.fixture
def t0() -> datetime:
    return datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)
