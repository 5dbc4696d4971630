from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from common.guest_checkin.config import CheckinSettings, ListingConfig
from common.guest_checkin.export import ExportEncodingError, build_export
from common.guest_checkin.listing import Listing
from common.guest_checkin.models import GuestRecord
from connectors.mail.client import MailDeliveryError

from .export_sink import ExportHandle, ExportSink, ExportSinkError
from .notification import CheckinIssueRow, Notification, NotificationSink, UnregisteredGuestRow
from .reconciliation import ReconciliationEngine
from .tabular_source import TabularSource, TabularSourceError

logger = logging.getLogger(__name__)


SourceFactory = Callable[[ListingConfig], TabularSource]


@dataclass
class ListingOutcome:
    listing: str
    export: Optional[ExportHandle] = None
    unregistered: list[UnregisteredGuestRow] = field(default_factory=list)
    issues: list[CheckinIssueRow] = field(default_factory=list)
    failed_write_backs: list[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class CheckinRunResult:
    listings: list[ListingOutcome] = field(default_factory=list)
    notification: Optional[Notification] = None
    notification_error: Optional[str] = None

    @property
    def attachments(self) -> list[Path]:
        return [o.export.location for o in self.listings if o.export is not None]

    @property
    def unregistered(self) -> list[UnregisteredGuestRow]:
        return [row for o in self.listings for row in o.unregistered]

    @property
    def issues(self) -> list[CheckinIssueRow]:
        return [row for o in self.listings for row in o.issues]


def partition_records(records: Iterable[GuestRecord]) -> tuple[list[GuestRecord], list[GuestRecord]]:
    valid: list[GuestRecord] = []
    invalid: list[GuestRecord] = []
    for record in records:
        (valid if record.is_valid() else invalid).append(record)
    return valid, invalid


def process_listing(
    listing: Listing,
    engine: ReconciliationEngine,
    sink: ExportSink,
) -> ListingOutcome:
    """
    Run one listing: find unregistered guests, report the invalid ones, export
    the valid ones and flag them registered.

    Source, encoding and sink failures abort this listing only and are recorded
    on the outcome. Guests are flagged registered only after their export file
    has been written.
    """
    outcome = ListingOutcome(listing=listing.name)
    logger.info("Listing: %s", listing.name)

    try:
        records = engine.find_unregistered()
    except TabularSourceError as exc:
        logger.error("Listing %s: reading guests failed: %s", listing.name, exc)
        outcome.error = str(exc)
        return outcome

    valid, invalid = partition_records(records)
    for record in invalid:
        outcome.issues.append(
            CheckinIssueRow(
                listing=listing.name,
                row_id=record.row_id,
                full_name=record.full_display_name,
                error_summary=record.error_summary(),
            )
        )

    if not valid:
        logger.info("No unregistered guests found for %s", listing.name)
        return outcome

    try:
        encoded = build_export(listing.a_record, [r.to_export_line() for r in valid])
        outcome.export = sink.persist(listing.export_identifier, encoded)
    except (ExportEncodingError, ExportSinkError) as exc:
        logger.error("Listing %s: export failed: %s", listing.name, exc)
        outcome.error = str(exc)
        return outcome
    logger.info("Export file created: %s", outcome.export.location)

    for record in valid:
        logger.info("%s", record)
        outcome.unregistered.append(
            UnregisteredGuestRow(
                listing=listing.name,
                row_id=record.row_id,
                full_name=record.full_display_name,
                check_in=record.check_in,
                check_out=record.check_out,
            )
        )
        if not engine.mark_registered(record.row_id, record.first_name, record.surname):
            outcome.failed_write_backs.append(record.row_id)

    return outcome


def run_checkin(
    settings: CheckinSettings,
    *,
    source_factory: SourceFactory,
    export_sink: ExportSink,
    notification_sink: Optional[NotificationSink],
    now: Optional[datetime] = None,
) -> CheckinRunResult:
    """Process every configured listing in order, then send one notification."""
    result = CheckinRunResult()

    for listing_config in settings.listings:
        listing = Listing.from_config(listing_config, now=now)
        try:
            source = source_factory(listing_config)
        except (TabularSourceError, ValueError) as exc:
            logger.error("Listing %s: tabular source unavailable: %s", listing.name, exc)
            result.listings.append(ListingOutcome(listing=listing.name, error=str(exc)))
            continue
        engine = ReconciliationEngine(source, sheet_name=listing.sheet_name)
        result.listings.append(process_listing(listing, engine, export_sink))

    logger.info("Prepare Email For Sending")
    header_image = settings.mail.header_image_path
    result.notification = Notification(
        from_address=settings.mail.from_address,
        to_addresses=tuple(settings.mail.to_addresses),
        subject=settings.mail.subject,
        attachments=tuple(result.attachments),
        unregistered=tuple(result.unregistered),
        issues=tuple(result.issues),
        header_image=Path(header_image) if header_image else None,
    )

    if notification_sink is None:
        logger.info("Notification sink disabled; skipping email.")
        return result

    try:
        notification_sink.send(result.notification)
    except (MailDeliveryError, OSError) as exc:
        logger.warning("Error sending email: %s", exc)
        result.notification_error = str(exc)
    return result
