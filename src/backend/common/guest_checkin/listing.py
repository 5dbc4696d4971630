from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from .config import ListingConfig


A_RECORD_DATE_PLACEHOLDER = "AddDate"
A_RECORD_DATE_FORMAT = "%Y.%m.%d %H:%M:%S"
# The authority's clock; a fixed offset, no daylight-saving adjustment.
A_RECORD_TZ = timezone(timedelta(hours=1))


def render_a_record(template: str, *, now: Optional[datetime] = None) -> str:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    stamp = current.astimezone(A_RECORD_TZ).strftime(A_RECORD_DATE_FORMAT)
    return template.replace(A_RECORD_DATE_PLACEHOLDER, stamp)


@dataclass(frozen=True)
class Listing:
    id: str
    name: str
    address: str
    spreadsheet_id: str
    sheet_name: str
    a_record: str

    @classmethod
    def from_config(cls, config: ListingConfig, *, now: Optional[datetime] = None) -> "Listing":
        return cls(
            id=config.id,
            name=config.name,
            address=config.address,
            spreadsheet_id=config.spreadsheet_id,
            sheet_name=config.sheet_name,
            a_record=render_a_record(config.a_record, now=now),
        )

    @property
    def export_identifier(self) -> str:
        return self.name
