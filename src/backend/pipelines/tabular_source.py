from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Protocol

from connectors.gsheets.auth import GSheetsAuthError
from connectors.gsheets.client import GSheetsHttpError
from connectors.gsheets.config import GSheetsConfig, get_gsheets_config
from connectors.gsheets.values import fetch_values, sheet_range, update_values


class TabularSourceError(RuntimeError):
    pass


class TabularSource(Protocol):
    def read_range(self, sheet: str, a1_range: str) -> list[list[Any]]:
        """Return cell values row-major; inner lists may be short or empty for absent cells."""
        ...

    def write_cell(self, sheet: str, a1_range: str, value: Any) -> None:
        """Write a single cell."""
        ...


def get_tabular_source(name: str, *, spreadsheet_id: str = "", fixtures_path: Path | None = None) -> TabularSource:
    """Resolve a tabular source implementation by name (fixtures|live)."""
    source = (name or "").strip().lower()
    if source == "live":
        if not spreadsheet_id:
            raise ValueError("Live tabular source requires a spreadsheet_id.")
        return GoogleSheetsSource(spreadsheet_id=spreadsheet_id)
    if source in ("fixtures", ""):
        if fixtures_path is None:
            raise ValueError("Fixtures tabular source requires a fixtures path.")
        return InMemoryTabularSource.from_json(fixtures_path)
    raise ValueError(f"Unknown tabular source '{name}' (expected 'fixtures' or 'live').")


class GoogleSheetsSource:
    """One spreadsheet, accessed through the Sheets REST connector."""

    def __init__(self, *, spreadsheet_id: str, config: GSheetsConfig | None = None) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._config = config or get_gsheets_config()

    def read_range(self, sheet: str, a1_range: str) -> list[list[Any]]:
        try:
            return fetch_values(
                self._config,
                spreadsheet_id=self._spreadsheet_id,
                range_name=sheet_range(sheet, a1_range),
                on_refresh=self._use_config,
            )
        except (GSheetsHttpError, GSheetsAuthError) as exc:
            raise TabularSourceError(f"Reading {sheet}!{a1_range} failed: {exc}") from exc

    def write_cell(self, sheet: str, a1_range: str, value: Any) -> None:
        try:
            update_values(
                self._config,
                spreadsheet_id=self._spreadsheet_id,
                range_name=sheet_range(sheet, a1_range),
                values=[[value]],
                on_refresh=self._use_config,
            )
        except (GSheetsHttpError, GSheetsAuthError) as exc:
            raise TabularSourceError(f"Writing {sheet}!{a1_range} failed: {exc}") from exc

    def _use_config(self, config: GSheetsConfig) -> None:
        # Keep refreshed tokens so later calls do not start from a stale one.
        self._config = config


_CELL_RE = re.compile(r"^([A-Z]+)(\d+)?$")


class InMemoryTabularSource:
    """
    Sheets held as lists of rows (row 1 first), mimicking the API's habit of
    dropping trailing empty cells. Supports the range shapes the reconciliation
    pipeline uses: `M2:M` (column from a row), `5:5` (whole row), `M5` (cell).
    """

    def __init__(self, sheets: dict[str, list[list[Any]]]) -> None:
        self._sheets = {name: [list(row) for row in rows] for name, rows in sheets.items()}
        self.writes: list[tuple[str, str, Any]] = []

    @classmethod
    def from_json(cls, path: Path) -> "InMemoryTabularSource":
        if not path.exists():
            raise FileNotFoundError(f"Tabular fixtures file not found: {path}")
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict) or "sheets" not in raw:
            raise ValueError("Tabular fixtures must contain a top-level 'sheets' object.")
        return cls(raw["sheets"])

    def read_range(self, sheet: str, a1_range: str) -> list[list[Any]]:
        rows = self._rows(sheet)
        start, _, end = a1_range.partition(":")
        if start.isdigit() and end.isdigit():
            first, last = int(start), int(end)
            return [_trim(row) for row in rows[first - 1 : last]]

        col, row_num = _parse_cell(start)
        first = row_num or 1
        if end:
            end_col, end_row = _parse_cell(end)
            if end_col != col:
                raise TabularSourceError(f"Unsupported multi-column range: {a1_range}")
            last = end_row or len(rows)
        else:
            last = first
        out: list[list[Any]] = []
        for row in rows[first - 1 : last]:
            cell = row[col - 1] if col - 1 < len(row) else None
            out.append([] if cell in (None, "") else [cell])
        while out and not out[-1]:
            out.pop()
        return out

    def write_cell(self, sheet: str, a1_range: str, value: Any) -> None:
        rows = self._rows(sheet)
        col, row_num = _parse_cell(a1_range)
        if row_num is None:
            raise TabularSourceError(f"Cell reference required, got {a1_range}")
        while len(rows) < row_num:
            rows.append([])
        row = rows[row_num - 1]
        while len(row) < col:
            row.append("")
        row[col - 1] = value
        self.writes.append((sheet, a1_range, value))

    def _rows(self, sheet: str) -> list[list[Any]]:
        if sheet not in self._sheets:
            raise TabularSourceError(f"Unknown sheet '{sheet}'.")
        return self._sheets[sheet]


def _parse_cell(ref: str) -> tuple[int, int | None]:
    match = _CELL_RE.match(ref.strip().upper())
    if not match:
        raise TabularSourceError(f"Unsupported A1 reference: {ref}")
    letters, digits = match.groups()
    col = 0
    for ch in letters:
        col = col * 26 + (ord(ch) - ord("A") + 1)
    return col, int(digits) if digits else None


def _trim(row: list[Any]) -> list[Any]:
    out = list(row)
    while out and out[-1] in (None, ""):
        out.pop()
    return out
