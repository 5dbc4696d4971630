from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from common.guest_checkin.models import GuestRecord


@dataclass(frozen=True)
class ColumnSpec:
    position: int  # 1-based column in the check-in sheet (A=1)
    field: str
    # Values longer than this are cut to it before validation; None keeps the full value.
    width: Optional[int] = None


# Check-in form response columns A..L. Column M holds the registered marker and
# anything past it is ignored.
GUEST_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec(1, "timestamp"),
    ColumnSpec(2, "purpose_of_stay", width=2),
    ColumnSpec(3, "check_in"),
    ColumnSpec(4, "check_out"),
    ColumnSpec(5, "surname"),
    ColumnSpec(6, "first_name"),
    ColumnSpec(7, "birth_date"),
    ColumnSpec(8, "country_of_citizenship", width=3),
    ColumnSpec(9, "travel_doc_number"),
    ColumnSpec(10, "visa_number"),
    ColumnSpec(11, "address_abroad"),
    ColumnSpec(12, "full_name"),
)

MARKER_COLUMN = "M"
# Form timestamp; filled on every response row, so it bounds the data rows.
TIMESTAMP_COLUMN = "A"
UNREGISTERED_MARKER_TOKEN = "false"


class IncompleteRowError(ValueError):
    def __init__(self, row_id: str, missing_fields: Sequence[str]):
        super().__init__(f"Row {row_id} is missing column(s): {', '.join(missing_fields)}")
        self.row_id = row_id
        self.missing_fields = tuple(missing_fields)


def clean_cell(value: Any) -> str:
    """Strip the surrounding double quotes the sheet export leaves on values; nothing else."""
    if value is None:
        return ""
    return str(value).strip('"')


def is_unregistered_marker(row: Optional[Sequence[Any]]) -> bool:
    """
    Classify one marker-column cell (as returned by the Sheets API, i.e. a list
    holding zero or one value).

    Absent cell: unregistered. An empty string is how an absent cell shows up
    mid-row, so it is absent too. Present: unregistered only if its lower-cased
    text contains "false" anywhere. Whitespace-only, "TRUE", or any other text
    counts as registered.
    """
    if not row:
        return True
    cell = row[0]
    if cell is None or cell == "":
        return True
    return UNREGISTERED_MARKER_TOKEN in str(cell).lower()


def unregistered_row_numbers(marker_cells: Sequence[Optional[Sequence[Any]]], *, first_row: int) -> list[int]:
    """Sheet row numbers (ascending) whose marker cell marks the guest unregistered."""
    return [
        first_row + offset
        for offset, row in enumerate(marker_cells)
        if is_unregistered_marker(row)
    ]


def guest_record_from_row(row_id: str, cells: Sequence[Any], *, strict: bool = False) -> GuestRecord:
    """
    Build a GuestRecord from one sheet row using `GUEST_COLUMNS`.

    Columns the row does not reach (the API drops trailing empty cells) become
    `missing` errors on the record. With `strict=True` they raise
    `IncompleteRowError` instead.
    """
    values: dict[str, str] = {}
    missing: list[str] = []
    for column in GUEST_COLUMNS:
        if column.position > len(cells):
            missing.append(column.field)
            values[column.field] = ""
            continue
        value = clean_cell(cells[column.position - 1])
        if column.width is not None:
            value = value[: column.width]
        values[column.field] = value

    if missing and strict:
        raise IncompleteRowError(row_id, missing)

    return GuestRecord(row_id=row_id, missing_fields=tuple(missing), **values)
