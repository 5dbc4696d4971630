from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from http.client import HTTPException
from typing import Any
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .config import GSheetsConfig
from .token_store import save_tokens, token_store_path


TOKEN_URL = "https://oauth2.googleapis.com/token"
# Refresh slightly early so a token never expires mid-request.
EXPIRY_LEEWAY_SECONDS = 60


class GSheetsAuthError(RuntimeError):
    def __init__(self, message: str, body: str | None = None):
        super().__init__(message)
        self.body = body


def refresh_access_token(config: GSheetsConfig) -> GSheetsConfig:
    """
    Exchange the long-lived refresh token for a new access token and persist it.
    """
    token_payload = _post_refresh_token(config)
    access_token = token_payload.get("access_token")
    expires_in = token_payload.get("expires_in")
    if not access_token or not expires_in:
        raise GSheetsAuthError("Token refresh response missing required fields.", json.dumps(token_payload))

    # Google only sends a refresh token when it rotates it.
    rotated = token_payload.get("refresh_token") or None
    updated = replace(
        config,
        access_token=access_token,
        refresh_token=rotated or config.refresh_token,
        token_expires_at=_expires_at_from_seconds(int(expires_in)),
    )
    store_path = token_store_path()
    try:
        save_tokens(
            store_path,
            access_token=updated.access_token,
            token_expires_at=updated.token_expires_at,
            refresh_token=rotated,
        )
    except OSError as exc:
        raise GSheetsAuthError(f"Saving refreshed tokens to {store_path} failed: {exc}") from exc
    return updated


def ensure_access_token_valid(config: GSheetsConfig) -> GSheetsConfig:
    """
    Ensure access token is present and unexpired; refresh otherwise.
    """
    if not config.access_token or _is_expired(config.token_expires_at):
        return refresh_access_token(config)
    return config


def _post_refresh_token(config: GSheetsConfig) -> dict[str, Any]:
    data = urlencode(
        {
            "grant_type": "refresh_token",
            "refresh_token": config.refresh_token,
            "client_id": config.client_id,
            "client_secret": config.client_secret,
        }
    ).encode("utf-8")

    req = Request(TOKEN_URL, data=data, method="POST")
    req.add_header("Accept", "application/json")
    req.add_header("Content-Type", "application/x-www-form-urlencoded")

    try:
        with urlopen(req, timeout=config.timeout_seconds) as resp:
            raw = resp.read().decode("utf-8")
            return json.loads(raw)
    except HTTPError as exc:
        body = exc.read().decode("utf-8") if exc.fp else None
        raise GSheetsAuthError(f"Token refresh failed: {exc.code} {exc.reason}", body) from exc
    except json.JSONDecodeError as exc:
        raise GSheetsAuthError(f"Token refresh returned invalid JSON: {exc}") from exc
    except (OSError, HTTPException) as exc:
        raise GSheetsAuthError(f"Token refresh failed: {str(exc) or type(exc).__name__}") from exc


def _is_expired(value: str) -> bool:
    parsed = _parse_expires(value)
    if parsed is None:
        return True
    now = datetime.now(timezone.utc) + timedelta(seconds=EXPIRY_LEEWAY_SECONDS)
    return parsed <= now


def _parse_expires(value: str) -> datetime | None:
    if not value:
        return None
    v = value.strip()
    if v.isdigit():
        return datetime.fromtimestamp(int(v), tz=timezone.utc)
    try:
        dt = datetime.fromisoformat(v.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _expires_at_from_seconds(seconds: int) -> str:
    dt = datetime.now(timezone.utc) + timedelta(seconds=seconds)
    return dt.isoformat()
