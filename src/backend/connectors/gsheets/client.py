from __future__ import annotations

import json
from http.client import HTTPException
from typing import Any, Callable
from urllib.error import HTTPError
from urllib.parse import urlencode, urljoin
from urllib.request import Request, urlopen

from .auth import ensure_access_token_valid, refresh_access_token
from .config import GSheetsConfig


# Called with the new config whenever a request had to refresh the access token,
# so long-lived callers can keep using it.
TokenRefreshHook = Callable[[GSheetsConfig], None]


class GSheetsHttpError(RuntimeError):
    def __init__(self, status: int, message: str, body: str | None = None):
        super().__init__(f"Google Sheets HTTP {status}: {message}")
        self.status = status
        self.body = body


def gsheets_get(
    config: GSheetsConfig,
    path: str,
    *,
    params: dict[str, Any] | None = None,
    on_refresh: TokenRefreshHook | None = None,
) -> dict[str, Any]:
    """
    Perform an authenticated GET against the Sheets REST API.
    """
    return _send(config, "GET", path, params=params, on_refresh=on_refresh)


def gsheets_put(
    config: GSheetsConfig,
    path: str,
    *,
    body: dict[str, Any],
    params: dict[str, Any] | None = None,
    on_refresh: TokenRefreshHook | None = None,
) -> dict[str, Any]:
    """
    Perform an authenticated PUT with a JSON body against the Sheets REST API.
    """
    return _send(config, "PUT", path, params=params, body=body, on_refresh=on_refresh)


def _send(
    config: GSheetsConfig,
    method: str,
    path: str,
    *,
    params: dict[str, Any] | None = None,
    body: dict[str, Any] | None = None,
    on_refresh: TokenRefreshHook | None = None,
) -> dict[str, Any]:
    # One request per call: no retry or backoff. A 401 triggers a single token refresh.
    current = ensure_access_token_valid(config)
    if current is not config and on_refresh is not None:
        on_refresh(current)
    refreshed = False
    data = json.dumps(body).encode("utf-8") if body is not None else None

    while True:
        url = _build_url(current.base_url, path, params)
        req = Request(url, data=data, method=method)
        req.add_header("Accept", "application/json")
        req.add_header("Authorization", f"Bearer {current.access_token}")
        if data is not None:
            req.add_header("Content-Type", "application/json")

        try:
            with urlopen(req, timeout=current.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
                return json.loads(raw) if raw.strip() else {}
        except HTTPError as exc:
            err_body = exc.read().decode("utf-8") if exc.fp else None
            if exc.code == 401 and not refreshed:
                current = refresh_access_token(current)
                refreshed = True
                if on_refresh is not None:
                    on_refresh(current)
                continue
            raise GSheetsHttpError(exc.code, exc.reason, err_body) from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise GSheetsHttpError(0, f"Invalid JSON response: {exc}") from exc
        # URLError and TimeoutError are OSErrors; a dropped connection while reading
        # the response surfaces as OSError or HTTPException, not URLError.
        except (OSError, HTTPException) as exc:
            raise GSheetsHttpError(0, str(exc) or type(exc).__name__) from exc


def _build_url(base_url: str, path: str, params: dict[str, Any] | None) -> str:
    normalized_path = path if path.startswith("/") else f"/{path}"
    url = urljoin(base_url, normalized_path)
    if params:
        url = f"{url}?{urlencode(params)}"
    return url
