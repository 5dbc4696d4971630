from datetime import datetime, timezone
from http.client import RemoteDisconnected
from unittest.mock import patch

import pytest

from common.guest_checkin.config import CheckinSettings
from connectors.gsheets.config import GSheetsConfig
from connectors.mail.client import MailDeliveryError
from pipelines.checkin import partition_records, run_checkin
from pipelines.export_sink import ExportSinkError, LocalExportSink
from pipelines.tabular_source import GoogleSheetsSource, InMemoryTabularSource, TabularSourceError


NOW = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)


class CapturingSink:
    def __init__(self, error: Exception | None = None):
        self.sent = []
        self._error = error

    def send(self, notification):
        if self._error is not None:
            raise self._error
        self.sent.append(notification)


class FailingReadSource(InMemoryTabularSource):
    def read_range(self, sheet, a1_range):
        raise TabularSourceError("connection reset")


class FailingWriteSource(InMemoryTabularSource):
    def write_cell(self, sheet, a1_range, value):
        raise TabularSourceError("quota exceeded")


class BrokenSink:
    def persist(self, identifier, encoded):
        raise ExportSinkError("disk full")


def _settings(*listings) -> CheckinSettings:
    return CheckinSettings.model_validate(
        {
            "listings": [
                {
                    "id": f"id-{name}",
                    "name": name,
                    "spreadsheet_id": f"ss-{name}",
                    "sheet_name": sheet,
                    "a_record": f"A|{name}|AddDate|",
                }
                for name, sheet in listings
            ],
            "mail": {"from_address": "host@example.com", "to_addresses": ["ops@example.com"]},
        }
    )


@pytest.fixture
def loft_rows(sheet_header, make_guest_row):
    return [
        sheet_header,
        make_guest_row(surname="Absent"),
        make_guest_row(surname="Registered", marker="TRUE"),
        make_guest_row(surname="Pending", marker="false"),
    ]


def test_partition_records(make_record):
    good, bad = make_record(row_id="2"), make_record(row_id="3", surname="")
    assert partition_records([good, bad]) == ([good], [bad])


def test_end_to_end_export_and_write_back(tmp_path, loft_rows):
    source = InMemoryTabularSource({"Loft": loft_rows})
    notifier = CapturingSink()

    result = run_checkin(
        _settings(("Loft", "Loft")),
        source_factory=lambda cfg: source,
        export_sink=LocalExportSink(root_dir=tmp_path),
        notification_sink=notifier,
        now=NOW,
    )

    outcome = result.listings[0]
    assert outcome.error is None
    assert outcome.export is not None
    content = outcome.export.location.read_bytes()
    lines = content.split(b"\r\n")
    assert len(lines) == 4 and lines[-1] == b""
    assert lines[0] == b"A|Loft|2024.03.01 09:00:00|"
    assert lines[1].startswith(b"U|01.03.2024|05.03.2024|Absent|Jana||")
    assert lines[2].startswith(b"U|01.03.2024|05.03.2024|Pending|Jana||")

    assert source.writes == [("Loft", "M2", "TRUE"), ("Loft", "M4", "TRUE")]
    assert [r.row_id for r in outcome.unregistered] == ["2", "4"]
    assert outcome.issues == []

    assert len(notifier.sent) == 1
    sent = notifier.sent[0]
    assert sent.attachments == (tmp_path / "Loft.unl",)
    assert [r.full_name for r in sent.unregistered] == ["Jana Absent", "Jana Pending"]
    assert sent.to_addresses == ("ops@example.com",)


def test_invalid_guest_reported_not_exported(tmp_path, sheet_header, make_guest_row):
    rows = [sheet_header, make_guest_row(country_of_citizenship="US")]
    source = InMemoryTabularSource({"Loft": rows})

    result = run_checkin(
        _settings(("Loft", "Loft")),
        source_factory=lambda cfg: source,
        export_sink=LocalExportSink(root_dir=tmp_path),
        notification_sink=CapturingSink(),
        now=NOW,
    )

    outcome = result.listings[0]
    assert outcome.export is None
    assert source.writes == []
    assert len(outcome.issues) == 1
    issue = outcome.issues[0]
    assert issue.row_id == "2"
    assert issue.full_name == "Jana Novak"
    assert "country of citizenship" in issue.error_summary
    assert result.notification.issues == (issue,)
    assert result.notification.attachments == ()


def test_read_failure_aborts_only_that_listing(tmp_path, loft_rows):
    sources = {
        "Broken": FailingReadSource({"Broken": loft_rows}),
        "Loft": InMemoryTabularSource({"Loft": loft_rows}),
    }

    result = run_checkin(
        _settings(("Broken", "Broken"), ("Loft", "Loft")),
        source_factory=lambda cfg: sources[cfg.name],
        export_sink=LocalExportSink(root_dir=tmp_path),
        notification_sink=CapturingSink(),
        now=NOW,
    )

    broken, loft = result.listings
    assert broken.error and "connection reset" in broken.error
    assert broken.export is None
    assert loft.error is None
    assert loft.export is not None
    assert result.attachments == [tmp_path / "Loft.unl"]


def test_source_factory_failure_is_isolated(tmp_path, loft_rows):
    def _factory(cfg):
        if cfg.name == "NoCreds":
            raise ValueError("Missing required environment variable: GSHEETS_CLIENT_ID")
        return InMemoryTabularSource({"Loft": loft_rows})

    result = run_checkin(
        _settings(("NoCreds", "Loft"), ("Loft", "Loft")),
        source_factory=_factory,
        export_sink=LocalExportSink(root_dir=tmp_path),
        notification_sink=None,
        now=NOW,
    )

    assert "GSHEETS_CLIENT_ID" in result.listings[0].error
    assert result.listings[1].export is not None


def test_write_back_failure_does_not_block_export_or_email(tmp_path, loft_rows):
    notifier = CapturingSink()

    result = run_checkin(
        _settings(("Loft", "Loft")),
        source_factory=lambda cfg: FailingWriteSource({"Loft": loft_rows}),
        export_sink=LocalExportSink(root_dir=tmp_path),
        notification_sink=notifier,
        now=NOW,
    )

    outcome = result.listings[0]
    assert outcome.export is not None
    assert outcome.failed_write_backs == ["2", "4"]
    assert len(outcome.unregistered) == 2
    assert len(notifier.sent) == 1


def test_unencodable_guest_aborts_listing_export(tmp_path, sheet_header, make_guest_row):
    source = InMemoryTabularSource({"Loft": [sheet_header, make_guest_row(surname="王")]})

    result = run_checkin(
        _settings(("Loft", "Loft")),
        source_factory=lambda cfg: source,
        export_sink=LocalExportSink(root_dir=tmp_path),
        notification_sink=CapturingSink(),
        now=NOW,
    )

    outcome = result.listings[0]
    assert outcome.export is None
    assert outcome.error and "cp1250" in outcome.error
    assert source.writes == []
    assert not (tmp_path / "Loft.unl").exists()


def test_sink_failure_aborts_listing_export(loft_rows):
    source = InMemoryTabularSource({"Loft": loft_rows})

    result = run_checkin(
        _settings(("Loft", "Loft")),
        source_factory=lambda cfg: source,
        export_sink=BrokenSink(),
        notification_sink=None,
        now=NOW,
    )

    assert result.listings[0].error == "disk full"
    assert source.writes == []


def test_mail_failure_is_recorded(tmp_path, loft_rows):
    result = run_checkin(
        _settings(("Loft", "Loft")),
        source_factory=lambda cfg: InMemoryTabularSource({"Loft": loft_rows}),
        export_sink=LocalExportSink(root_dir=tmp_path),
        notification_sink=CapturingSink(error=MailDeliveryError("relay denied")),
        now=NOW,
    )

    assert result.notification_error == "relay denied"
    assert result.listings[0].export is not None


def test_dropped_sheets_connection_does_not_stop_the_run(tmp_path, loft_rows):
    live = GoogleSheetsSource(
        spreadsheet_id="ss-Remote",
        config=GSheetsConfig(
            base_url="https://sheets.googleapis.com",
            client_id="cid",
            client_secret="secret",
            refresh_token="refresh",
            access_token="token",
            token_expires_at="2099-01-01T00:00:00+00:00",
        ),
    )
    sources = {"Remote": live, "Loft": InMemoryTabularSource({"Loft": loft_rows})}
    notifier = CapturingSink()

    with patch("connectors.gsheets.client.urlopen", side_effect=RemoteDisconnected("closed")):
        result = run_checkin(
            _settings(("Remote", "Remote"), ("Loft", "Loft")),
            source_factory=lambda cfg: sources[cfg.name],
            export_sink=LocalExportSink(root_dir=tmp_path),
            notification_sink=notifier,
            now=NOW,
        )

    remote, loft = result.listings
    assert remote.error and "closed" in remote.error
    assert loft.export is not None
    assert len(notifier.sent) == 1
