from .guest_rows import (
    GUEST_COLUMNS,
    MARKER_COLUMN,
    TIMESTAMP_COLUMN,
    ColumnSpec,
    IncompleteRowError,
    clean_cell,
    guest_record_from_row,
    is_unregistered_marker,
    unregistered_row_numbers,
)

__all__ = [
    "GUEST_COLUMNS",
    "MARKER_COLUMN",
    "TIMESTAMP_COLUMN",
    "ColumnSpec",
    "IncompleteRowError",
    "clean_cell",
    "guest_record_from_row",
    "is_unregistered_marker",
    "unregistered_row_numbers",
]
