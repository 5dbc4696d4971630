from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .token_store import load_tokens, token_store_path


load_dotenv()


DEFAULT_BASE_URL = "https://sheets.googleapis.com"
DEFAULT_TIMEOUT_SECONDS = 30


@dataclass(frozen=True)
class GSheetsConfig:
    base_url: str
    client_id: str
    client_secret: str
    refresh_token: str
    access_token: str
    token_expires_at: str
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS


def get_gsheets_config() -> GSheetsConfig:
    """
    Load Google Sheets connector configuration from environment variables.

    Reads GSHEETS_CLIENT_ID, GSHEETS_CLIENT_SECRET, GSHEETS_REFRESH_TOKEN and,
    optionally, GSHEETS_ACCESS_TOKEN / GSHEETS_TOKEN_EXPIRES_AT (a missing or
    expired access token is refreshed on first use). Tokens saved by a previous
    refresh in the token store take precedence over the environment.
    """
    stored = load_tokens(token_store_path())
    return GSheetsConfig(
        base_url=os.getenv("GSHEETS_BASE_URL", DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL,
        client_id=_require_env("GSHEETS_CLIENT_ID"),
        client_secret=_require_env("GSHEETS_CLIENT_SECRET"),
        refresh_token=_require_env("GSHEETS_REFRESH_TOKEN", stored),
        access_token=_optional_env("GSHEETS_ACCESS_TOKEN", stored),
        token_expires_at=_optional_env("GSHEETS_TOKEN_EXPIRES_AT", stored),
        timeout_seconds=_int_env("GSHEETS_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
    )


def _require_env(name: str, stored: dict[str, str] | None = None) -> str:
    value = _optional_env(name, stored)
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value


def _optional_env(name: str, stored: dict[str, str] | None = None) -> str:
    if stored and name in stored and stored[name]:
        return stored[name]
    return os.getenv(name, "").strip()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive.")
    return value
