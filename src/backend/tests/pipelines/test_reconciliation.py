import logging
from http.client import RemoteDisconnected
from unittest.mock import patch

import pytest

from connectors.gsheets.config import GSheetsConfig
from pipelines.reconciliation import ReconciliationEngine
from pipelines.tabular_source import GoogleSheetsSource, InMemoryTabularSource, TabularSourceError


SHEET = "Form Responses 1"


class FailingWriteSource(InMemoryTabularSource):
    def write_cell(self, sheet, a1_range, value):
        raise TabularSourceError("quota exceeded")


class FailingReadSource(InMemoryTabularSource):
    def read_range(self, sheet, a1_range):
        raise TabularSourceError("connection reset")


@pytest.fixture
def three_row_sheet(sheet_header, make_guest_row):
    return [
        sheet_header,
        make_guest_row(surname="Absent"),
        make_guest_row(surname="Registered", marker="TRUE"),
        make_guest_row(surname="Pending", marker="false"),
    ]


def test_finds_absent_and_false_marked_rows(three_row_sheet):
    engine = ReconciliationEngine(InMemoryTabularSource({SHEET: three_row_sheet}), sheet_name=SHEET)

    records = engine.find_unregistered()

    assert [r.row_id for r in records] == ["2", "4"]
    assert [r.surname for r in records] == ["Absent", "Pending"]
    assert all(r.is_valid() for r in records)


def test_returns_valid_and_invalid_records_in_row_order(sheet_header, make_guest_row):
    rows = [
        sheet_header,
        make_guest_row(marker="FALSE", country_of_citizenship="US"),
        make_guest_row(marker="yes"),
        make_guest_row(marker="is false"),
        make_guest_row(marker="false ", travel_doc_number="123"),
    ]
    engine = ReconciliationEngine(InMemoryTabularSource({SHEET: rows}), sheet_name=SHEET)

    records = engine.find_unregistered()

    assert [r.row_id for r in records] == ["2", "4", "5"]
    assert [r.is_valid() for r in records] == [False, True, False]
    assert "country of citizenship" in records[0].error_summary()
    assert "travel doc number" in records[2].error_summary()


def test_no_marker_column_data_means_no_rows_checked(sheet_header):
    engine = ReconciliationEngine(InMemoryTabularSource({SHEET: [sheet_header[:12]]}), sheet_name=SHEET)
    assert engine.find_unregistered() == []


def test_blank_guest_fields_yield_invalid_record(sheet_header, make_guest_row):
    rows = [sheet_header, ["", "", "", "", "", "", "", "", "", "", "", "", "FALSE"], make_guest_row(marker="FALSE")]
    engine = ReconciliationEngine(InMemoryTabularSource({SHEET: rows}), sheet_name=SHEET)

    records = engine.find_unregistered()

    assert [r.row_id for r in records] == ["2", "3"]
    assert not records[0].is_valid()


def test_read_failure_propagates(three_row_sheet):
    engine = ReconciliationEngine(FailingReadSource({SHEET: three_row_sheet}), sheet_name=SHEET)
    with pytest.raises(TabularSourceError):
        engine.find_unregistered()


def test_mark_registered_writes_true_to_marker_cell(three_row_sheet):
    source = InMemoryTabularSource({SHEET: three_row_sheet})
    engine = ReconciliationEngine(source, sheet_name=SHEET)

    assert engine.mark_registered("4", "Jana", "Pending") is True

    assert source.writes == [(SHEET, "M4", "TRUE")]
    assert [r.row_id for r in engine.find_unregistered()] == ["2"]


def test_mark_registered_failure_is_logged_not_raised(three_row_sheet, caplog):
    engine = ReconciliationEngine(FailingWriteSource({SHEET: three_row_sheet}), sheet_name=SHEET)

    with caplog.at_level(logging.ERROR):
        assert engine.mark_registered("2", "Jana", "Absent") is False

    assert "Updating registration status for guest Jana Absent on row 2" in caplog.text


def test_rows_below_last_marker_are_unregistered(sheet_header, make_guest_row):
    rows = [
        sheet_header,
        make_guest_row(surname="Old", marker="TRUE"),
        make_guest_row(surname="New"),
        make_guest_row(surname="Newer"),
    ]
    engine = ReconciliationEngine(InMemoryTabularSource({SHEET: rows}), sheet_name=SHEET)

    records = engine.find_unregistered()

    assert [r.row_id for r in records] == ["3", "4"]
    assert [r.surname for r in records] == ["New", "Newer"]


def test_sheet_without_any_marker_is_fully_unregistered(sheet_header, make_guest_row):
    rows = [sheet_header, make_guest_row(surname="First"), make_guest_row(surname="Second")]
    engine = ReconciliationEngine(InMemoryTabularSource({SHEET: rows}), sheet_name=SHEET)

    assert engine.unregistered_row_numbers() == [2, 3]


def _google_source() -> GoogleSheetsSource:
    cfg = GSheetsConfig(
        base_url="https://sheets.googleapis.com",
        client_id="cid",
        client_secret="secret",
        refresh_token="refresh",
        access_token="token",
        token_expires_at="2099-01-01T00:00:00+00:00",
    )
    return GoogleSheetsSource(spreadsheet_id="sid", config=cfg)


def test_dropped_connection_on_write_back_returns_false(caplog):
    engine = ReconciliationEngine(_google_source(), sheet_name=SHEET)

    with patch("connectors.gsheets.client.urlopen", side_effect=RemoteDisconnected("closed")):
        with caplog.at_level(logging.ERROR):
            assert engine.mark_registered("2", "Jana", "Novak") is False

    assert "Updating registration status for guest Jana Novak on row 2" in caplog.text


def test_dropped_connection_on_read_is_a_source_error():
    engine = ReconciliationEngine(_google_source(), sheet_name=SHEET)

    with patch("connectors.gsheets.client.urlopen", side_effect=ConnectionResetError("reset by peer")):
        with pytest.raises(TabularSourceError):
            engine.find_unregistered()
