"""SMS4: Account core configuration via environment variables."""

from __future__ import annotations

from datetime import timedelta

from pydantic_settings import BaseSettings


class Sms4Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "SMS4_",
        "extra": "ignore",
    }

    # ── SMTP (captcha delivery) ────────────────────────────────
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_starttls: bool = True
    smtp_timeout_seconds: float = 10.0
    mail_from: str = "SMS4 <noreply@pkuschool.edu.cn>"

    # ── Accounts ───────────────────────────────────────────────
    allowed_email_domains: list[str] = ["pkuschool.edu.cn", "i.pkuschool.edu.cn"]

    # ── Verify sessions ────────────────────────────────────────
    verify_cooldown_minutes: int = 10
    captcha_length: int = 6

    # ── Logging ────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def verify_cooldown(self) -> timedelta:
        return timedelta(minutes=self.verify_cooldown_minutes)


settings = Sms4Settings()
