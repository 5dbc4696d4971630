from __future__ import annotations

import logging

from adapters.gsheets.guest_rows import (
    MARKER_COLUMN,
    TIMESTAMP_COLUMN,
    guest_record_from_row,
    unregistered_row_numbers,
)
from common.guest_checkin.models import GuestRecord

from .tabular_source import TabularSource, TabularSourceError

logger = logging.getLogger(__name__)


FIRST_DATA_ROW = 2
REGISTERED_VALUE = "TRUE"


class ReconciliationEngine:
    """
    Finds check-in rows not yet registered with the authorities and flags them
    once they have been exported. One engine per sheet; the source is injected.
    """

    def __init__(self, source: TabularSource, *, sheet_name: str) -> None:
        self._source = source
        self._sheet_name = sheet_name

    @property
    def sheet_name(self) -> str:
        return self._sheet_name

    def find_unregistered(self) -> list[GuestRecord]:
        """
        Return one GuestRecord per unregistered row, valid and invalid alike,
        in ascending row order. Read failures propagate as TabularSourceError.
        """
        row_numbers = self.unregistered_row_numbers()

        records: list[GuestRecord] = []
        for row_number in row_numbers:
            cells = self._source.read_range(self._sheet_name, f"{row_number}:{row_number}")
            if not cells or not cells[0]:
                logger.warning("Empty guest row found: %s row %s", self._sheet_name, row_number)
                continue
            record = guest_record_from_row(str(row_number), cells[0])
            logger.debug("Found unregistered guest: %s", record)
            if not record.is_valid():
                logger.warning(
                    "Unregistered guest %s can not be registered: %s",
                    record.full_display_name,
                    record.error_summary(),
                )
            records.append(record)
        return records

    def unregistered_row_numbers(self) -> list[int]:
        """
        Sheet rows whose marker cell is absent or says false.

        The source drops trailing empty cells, so `M2:M` stops at the last
        non-empty marker; rows below it (typically the newest form responses)
        are found by measuring the always-filled timestamp column as well.
        """
        marker_range = f"{MARKER_COLUMN}{FIRST_DATA_ROW}:{MARKER_COLUMN}"
        marker_cells = list(self._source.read_range(self._sheet_name, marker_range))
        timestamp_range = f"{TIMESTAMP_COLUMN}{FIRST_DATA_ROW}:{TIMESTAMP_COLUMN}"
        data_rows = len(self._source.read_range(self._sheet_name, timestamp_range))
        marker_cells.extend([] for _ in range(data_rows - len(marker_cells)))
        logger.info("Checking a total of %d guests", len(marker_cells))
        row_numbers = unregistered_row_numbers(marker_cells, first_row=FIRST_DATA_ROW)
        logger.info("%d unregistered guests found", len(row_numbers))
        return row_numbers

    def mark_registered(self, row_id: str, first_name: str, last_name: str) -> bool:
        """
        Flip the row's marker to registered. Failures are logged, never raised:
        the export for this guest has already gone out.
        """
        cell = f"{MARKER_COLUMN}{row_id}"
        try:
            self._source.write_cell(self._sheet_name, cell, REGISTERED_VALUE)
        except TabularSourceError as exc:
            logger.error(
                "Updating registration status for guest %s %s on row %s: %s",
                first_name,
                last_name,
                row_id,
                exc,
            )
            return False
        logger.info(
            "Updated %s %s on row %s col 'Registered With Authorities'", first_name, last_name, row_id
        )
        return True
