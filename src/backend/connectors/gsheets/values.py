from __future__ import annotations

from typing import Any
from urllib.parse import quote

from .client import TokenRefreshHook, gsheets_get, gsheets_put
from .config import GSheetsConfig


def sheet_range(sheet_name: str, a1_range: str) -> str:
    """Qualify an A1 range with its sheet, quoting the sheet name as Sheets expects."""
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!{a1_range}"


def fetch_values(
    config: GSheetsConfig,
    *,
    spreadsheet_id: str,
    range_name: str,
    on_refresh: TokenRefreshHook | None = None,
) -> list[list[Any]]:
    """
    Fetch a range's cell values (rows major). Trailing empty rows and cells are
    omitted by the API, so inner lists may be shorter than the range or empty.
    """
    payload = gsheets_get(
        config,
        _values_path(spreadsheet_id, range_name),
        params={"majorDimension": "ROWS"},
        on_refresh=on_refresh,
    )
    values = payload.get("values") or []
    return [list(row) if isinstance(row, list) else [] for row in values]


def update_values(
    config: GSheetsConfig,
    *,
    spreadsheet_id: str,
    range_name: str,
    values: list[list[Any]],
    value_input_option: str = "RAW",
    on_refresh: TokenRefreshHook | None = None,
) -> dict[str, Any]:
    return gsheets_put(
        config,
        _values_path(spreadsheet_id, range_name),
        params={"valueInputOption": value_input_option},
        body={"range": range_name, "majorDimension": "ROWS", "values": values},
        on_refresh=on_refresh,
    )


def _values_path(spreadsheet_id: str, range_name: str) -> str:
    return f"/v4/spreadsheets/{quote(spreadsheet_id, safe='')}/values/{quote(range_name, safe='')}"
