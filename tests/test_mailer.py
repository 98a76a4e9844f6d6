"""
Tests for the SMTP captcha mailer.

Validates:
- Captcha message contents
- SMTP session sequence
- SMTP failures surface as TransportError
"""

from __future__ import annotations

import asyncio
import smtplib

import pytest

from sms4.account.errors import TransportError
from sms4.integrations.mailer import SmtpTransport, build_captcha_message


class FakeSMTP:
    """Stand-in for smtplib.SMTP recording the calls made on it."""

    instances: list["FakeSMTP"] = []
    fail_on: str | None = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls: list[str] = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.calls.append("quit")
        return False

    def _maybe_fail(self, name):
        self.calls.append(name)
        if FakeSMTP.fail_on == name:
            raise smtplib.SMTPException(f"{name} failed")

    def starttls(self):
        self._maybe_fail("starttls")

    def login(self, user, password):
        self._maybe_fail("login")

    def send_message(self, message):
        self._maybe_fail("send_message")
        self.messages.append(message)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_on = None
    monkeypatch.setattr("sms4.integrations.mailer.smtplib.SMTP", FakeSMTP)
    return FakeSMTP


class TestBuildCaptchaMessage:

    def test_headers_and_body(self, settings):
        message = build_captcha_message("alice@pkuschool.edu.cn", "reset password", "123456", settings)
        assert message["To"] == "alice@pkuschool.edu.cn"
        assert message["From"] == settings.mail_from
        assert message["Subject"] == "Your captcha for reset password"
        assert "123456" in message.get_content()


class TestSmtpTransport:

    def test_sends_with_starttls_and_login(self, fake_smtp, settings):
        settings.smtp_host = "smtp.pkuschool.edu.cn"
        settings.smtp_username = "mailer"
        settings.smtp_password = "secret"
        message = build_captcha_message("alice@pkuschool.edu.cn", "reset password", "123456", settings)

        asyncio.run(SmtpTransport(settings).send(message))

        [server] = fake_smtp.instances
        assert server.host == "smtp.pkuschool.edu.cn"
        assert server.timeout == settings.smtp_timeout_seconds
        assert server.calls == ["starttls", "login", "send_message", "quit"]
        assert server.messages == [message]

    def test_skips_login_without_credentials(self, fake_smtp, settings):
        settings.smtp_username = ""
        settings.smtp_starttls = False
        message = build_captcha_message("alice@pkuschool.edu.cn", "reset password", "123456", settings)

        asyncio.run(SmtpTransport(settings).send(message))

        [server] = fake_smtp.instances
        assert server.calls == ["send_message", "quit"]

    @pytest.mark.parametrize("step", ["starttls", "send_message"])
    def test_smtp_error_becomes_transport_error(self, fake_smtp, settings, step):
        fake_smtp.fail_on = step
        message = build_captcha_message("alice@pkuschool.edu.cn", "reset password", "123456", settings)

        with pytest.raises(TransportError) as exc_info:
            asyncio.run(SmtpTransport(settings).send(message))
        assert isinstance(exc_info.value.__cause__, smtplib.SMTPException)

    def test_connection_refused(self, monkeypatch, settings):
        def refuse(*args, **kwargs):
            raise ConnectionRefusedError("refused")

        monkeypatch.setattr("sms4.integrations.mailer.smtplib.SMTP", refuse)
        message = build_captcha_message("alice@pkuschool.edu.cn", "reset password", "123456", settings)

        with pytest.raises(TransportError):
            asyncio.run(SmtpTransport(settings).send(message))
