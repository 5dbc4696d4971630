"""Google Sheets connector (network + auth lives here; row mapping lives in src/backend/adapters/gsheets)."""

from .client import GSheetsHttpError
from .config import GSheetsConfig, get_gsheets_config
from .values import fetch_values, sheet_range, update_values

__all__ = [
    "GSheetsConfig",
    "GSheetsHttpError",
    "get_gsheets_config",
    "fetch_values",
    "sheet_range",
    "update_values",
]
