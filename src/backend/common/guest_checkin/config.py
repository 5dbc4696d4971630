from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator


DEFAULT_SETTINGS_PATH = "config/settings.json"


class SettingsError(ValueError):
    pass


class ListingConfig(BaseModel):
    id: str
    name: str
    address: str = ""
    spreadsheet_id: str
    sheet_name: str
    # Header template; the literal `AddDate` is replaced with the run timestamp.
    a_record: str

    @field_validator("name", "spreadsheet_id", "sheet_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class MailConfig(BaseModel):
    from_address: str
    to_addresses: List[str] = Field(default_factory=list)
    subject: str = "Guest Checkin - Unregistered Guests Available"
    header_image_path: Optional[str] = None


class CheckinSettings(BaseModel):
    """Process settings loaded from the JSON settings file.

    Secrets (Google and SMTP credentials) are not part of this file; the
    connectors read them from the environment / `.env`.
    """

    listings: List[ListingConfig] = Field(default_factory=list)
    mail: MailConfig
    export_directory: str = "exports"
    log_filepath: str = "output.log"
    log_level: str = "INFO"


def settings_path(override: str | None = None) -> Path:
    raw = override or os.getenv("GUEST_CHECKIN_SETTINGS", DEFAULT_SETTINGS_PATH)
    return Path(raw).expanduser()


def load_settings(path: Path) -> CheckinSettings:
    if not path.exists():
        raise SettingsError(f"Settings file not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Settings file is not valid JSON: {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise SettingsError("Settings must be a JSON object.")
    try:
        return CheckinSettings.model_validate(raw)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings in {path}: {exc}") from exc
