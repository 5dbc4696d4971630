from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int
    username: str
    password: str
    starttls: bool = True
    timeout_seconds: int = 30


def get_smtp_config() -> SmtpConfig:
    """
    Load SMTP delivery settings from environment variables.

    Reads MAIL_SMTP_HOST (required), MAIL_SMTP_PORT, MAIL_SMTP_USERNAME,
    MAIL_SMTP_PASSWORD, MAIL_SMTP_STARTTLS and MAIL_TIMEOUT_SECONDS.
    """
    host = os.getenv("MAIL_SMTP_HOST", "").strip()
    if not host:
        raise ValueError("Missing required environment variable: MAIL_SMTP_HOST")
    return SmtpConfig(
        host=host,
        port=_int_env("MAIL_SMTP_PORT", 587),
        username=os.getenv("MAIL_SMTP_USERNAME", "").strip(),
        password=os.getenv("MAIL_SMTP_PASSWORD", "").strip(),
        starttls=os.getenv("MAIL_SMTP_STARTTLS", "true").strip().lower() in ("1", "true", "yes"),
        timeout_seconds=_int_env("MAIL_TIMEOUT_SECONDS", 30),
    )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from exc
