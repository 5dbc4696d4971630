from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


TOKEN_STORE_DEFAULT = ".gsheets_tokens.json"
ACCESS_TOKEN_KEY = "GSHEETS_ACCESS_TOKEN"
REFRESH_TOKEN_KEY = "GSHEETS_REFRESH_TOKEN"
EXPIRES_AT_KEY = "GSHEETS_TOKEN_EXPIRES_AT"


def token_store_path() -> str:
    return os.getenv("GSHEETS_TOKEN_STORE_PATH", TOKEN_STORE_DEFAULT)


def load_tokens(path: str) -> dict[str, str] | None:
    """
    Return the stored token values, or None when there is no usable store.

    A corrupt or unreadable store is ignored with a warning; the refresh token
    from the environment is enough to mint a new access token.
    """
    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable token store %s: %s", path, exc)
        return None
    if not isinstance(raw, dict):
        logger.warning("Ignoring token store %s: expected a JSON object", path)
        return None
    return {k: str(v) for k, v in raw.items() if v is not None}


def save_tokens(
    path: str,
    *,
    access_token: str,
    token_expires_at: str,
    refresh_token: str | None = None,
) -> None:
    """
    Persist a freshly minted access token.

    Google only includes a refresh token in the response when it rotates it, so
    `refresh_token` is usually None and whatever refresh token the store already
    holds is kept. The store is written to a sibling temp file and swapped in, so
    an interrupted write never leaves it half-written. OSError propagates.
    """
    data: dict[str, Any] = load_tokens(path) or {}
    data[ACCESS_TOKEN_KEY] = access_token
    data[EXPIRES_AT_KEY] = token_expires_at
    if refresh_token:
        data[REFRESH_TOKEN_KEY] = refresh_token
    data["updated_at"] = datetime.now(timezone.utc).isoformat()

    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2)
    os.replace(tmp_path, path)
