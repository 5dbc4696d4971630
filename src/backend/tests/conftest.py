import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work,
# even when pytest's rootdir is the repository root.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import pytest

from common.guest_checkin.models import GuestRecord


VALID_FIELDS = {
    "timestamp": "01.03.2024 14:02:11",
    "purpose_of_stay": "10",
    "check_in": "01.03.2024",
    "check_out": "05.03.2024",
    "surname": "Novak",
    "first_name": "Jana",
    "birth_date": "29.02.1988",
    "country_of_citizenship": "SVK",
    "travel_doc_number": "AB123456",
    "visa_number": "",
    "address_abroad": "Hlavna 1, Bratislava",
    "full_name": "Jana Novak",
}

# Sheet column order A..L.
ROW_ORDER = (
    "timestamp",
    "purpose_of_stay",
    "check_in",
    "check_out",
    "surname",
    "first_name",
    "birth_date",
    "country_of_citizenship",
    "travel_doc_number",
    "visa_number",
    "address_abroad",
    "full_name",
)


@pytest.fixture
def valid_fields() -> dict:
    return dict(VALID_FIELDS)


@pytest.fixture
def make_record():
    def _make(row_id: str = "2", **overrides) -> GuestRecord:
        fields = dict(VALID_FIELDS)
        fields.update(overrides)
        return GuestRecord(row_id=row_id, **fields)

    return _make


@pytest.fixture
def make_guest_row():
    """Build a sheet row (columns A..L, plus M when `marker` is given)."""

    def _make(marker=None, **overrides) -> list:
        fields = dict(VALID_FIELDS)
        fields.update(overrides)
        row = [fields[name] for name in ROW_ORDER]
        if marker is not None:
            row.append(marker)
        return row

    return _make


@pytest.fixture
def sheet_header() -> list:
    return [
        "Timestamp",
        "Purpose of stay",
        "Check in",
        "Check out",
        "Surname",
        "First name",
        "Date of birth",
        "Citizenship",
        "Travel document",
        "Visa",
        "Address abroad",
        "Full name",
        "Registered With Authorities",
    ]
