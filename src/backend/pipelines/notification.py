from __future__ import annotations

import html as html_lib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from connectors.mail.client import build_message, send_message
from connectors.mail.config import SmtpConfig, get_smtp_config

logger = logging.getLogger(__name__)


UNREGISTERED_HEADERS = ("Listing", "Row", "Fullname", "Check In", "Check Out")
ISSUE_HEADERS = ("Listing", "Row", "Fullname", "Input Error(s)")


@dataclass(frozen=True)
class UnregisteredGuestRow:
    listing: str
    row_id: str
    full_name: str
    check_in: str
    check_out: str

    def cells(self) -> tuple[str, ...]:
        return (self.listing, self.row_id, self.full_name, self.check_in, self.check_out)


@dataclass(frozen=True)
class CheckinIssueRow:
    listing: str
    row_id: str
    full_name: str
    error_summary: str

    def cells(self) -> tuple[str, ...]:
        return (self.listing, self.row_id, self.full_name, self.error_summary)


@dataclass(frozen=True)
class Notification:
    from_address: str
    to_addresses: tuple[str, ...]
    subject: str
    attachments: tuple[Path, ...] = ()
    unregistered: tuple[UnregisteredGuestRow, ...] = ()
    issues: tuple[CheckinIssueRow, ...] = ()
    header_image: Path | None = None


class NotificationSink(Protocol):
    def send(self, notification: Notification) -> None:
        ...


def render_notification_html(notification: Notification) -> str:
    def _escape(value: object) -> str:
        return html_lib.escape("" if value is None else str(value))

    def _table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
        parts = ["<tr>" + "".join(f"<td>{_escape(h)}</td>" for h in headers) + "</tr>"]
        for row in rows:
            parts.append("<tr>" + "".join(f"<td>{_escape(c)}</td>" for c in row) + "</tr>")
        return "".join(parts)

    lines = ["<html>", "<body>"]
    if notification.header_image is not None:
        lines.append('<img src="cid:header_image" alt="Image" style="width:100%; max-width:600px;">')
        lines.append("<br>")
        lines.append("<br>")
    lines.extend(
        [
            '<h2 style="color: #1E90FF;">Guests Available for Checkin</h2>',
            '<table border="1">',
            _table(UNREGISTERED_HEADERS, [r.cells() for r in notification.unregistered]),
            "</table>",
            "<br>",
            '<h2 style="color: #1E90FF;">Guests with Checkin Issues</h2>',
            '<table border="1">',
            _table(ISSUE_HEADERS, [r.cells() for r in notification.issues]),
            "</table>",
            "</body>",
            "</html>",
        ]
    )
    return "\n".join(lines)


class SmtpNotificationSink:
    def __init__(self, *, config: SmtpConfig | None = None) -> None:
        self._config = config or get_smtp_config()

    def send(self, notification: Notification) -> None:
        for attachment in notification.attachments:
            logger.info("Attaching file %s to email", attachment)
        message = build_message(
            from_address=notification.from_address,
            to_addresses=notification.to_addresses,
            subject=notification.subject,
            html_body=render_notification_html(notification),
            attachments=notification.attachments,
            inline_image=notification.header_image,
        )
        send_message(self._config, message)
        logger.info("Email sent successfully!")
