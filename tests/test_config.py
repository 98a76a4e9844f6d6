"""Tests for settings and logging setup."""

from __future__ import annotations

import io
import json
import logging
from datetime import timedelta

import structlog

from sms4.account.schema import VerifyVariant
from sms4.account.verify import Ext
from sms4.config import Sms4Settings
from sms4.log import configure_logging


class TestSettings:

    def test_defaults(self):
        settings = Sms4Settings(_env_file=None)
        assert settings.verify_cooldown == timedelta(minutes=10)
        assert settings.captcha_length == 6
        assert settings.allowed_email_domains == ["pkuschool.edu.cn", "i.pkuschool.edu.cn"]

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SMS4_VERIFY_COOLDOWN_MINUTES", "3")
        monkeypatch.setenv("SMS4_SMTP_HOST", "smtp.example.org")
        monkeypatch.setenv("SMS4_ALLOWED_EMAIL_DOMAINS", '["example.org"]')
        settings = Sms4Settings(_env_file=None)
        assert settings.verify_cooldown == timedelta(minutes=3)
        assert settings.smtp_host == "smtp.example.org"
        assert settings.allowed_email_domains == ["example.org"]


class TestLogging:

    def teardown_method(self):
        structlog.reset_defaults()
        logger = logging.getLogger("sms4")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)

    def test_configure_json(self):
        configure_logging(Sms4Settings(_env_file=None, log_format="json"), io.StringIO())
        assert structlog.is_configured()

    def test_configure_console(self):
        configure_logging(
            Sms4Settings(_env_file=None, log_format="console", log_level="DEBUG"), io.StringIO()
        )
        assert structlog.is_configured()

    def test_module_loggers_render_as_json(self, t0):
        stream = io.StringIO()
        configure_logging(Sms4Settings(_env_file=None, log_format="json"), stream)

        Ext().request(VerifyVariant.RESET_PASSWORD, t0)

        record = json.loads(stream.getvalue().splitlines()[-1])
        assert record["event"] == "Verify session created: variant=reset_password"
        assert record["level"] == "info"
        assert record["logger"] == "sms4.account.verify"
        assert "timestamp" in record

    def test_structlog_loggers_share_the_handler(self):
        stream = io.StringIO()
        configure_logging(Sms4Settings(_env_file=None, log_format="json"), stream)

        structlog.get_logger("sms4.worker").info("captcha_sent", variant="activation")

        record = json.loads(stream.getvalue().splitlines()[-1])
        assert record["event"] == "captcha_sent"
        assert record["variant"] == "activation"

    def test_level_filters_records(self):
        stream = io.StringIO()
        configure_logging(Sms4Settings(_env_file=None, log_format="json", log_level="WARNING"), stream)

        logging.getLogger("sms4.account.verify").info("dropped")
        logging.getLogger("sms4.account.verify").warning("kept")

        lines = stream.getvalue().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["kept"]

    def test_reconfigure_replaces_handler(self):
        first, second = io.StringIO(), io.StringIO()
        configure_logging(Sms4Settings(_env_file=None, log_format="json"), first)
        configure_logging(Sms4Settings(_env_file=None, log_format="json"), second)

        logging.getLogger("sms4").warning("once")

        assert first.getvalue() == ""
        assert len(second.getvalue().splitlines()) == 1
