"""Guest check-in domain logic: field rules, guest records, export format.

This package contains no spreadsheet, file-system or mail calls; those live in
`connectors` and `pipelines`.
"""

from .config import CheckinSettings, ListingConfig, MailConfig, SettingsError
from .export import ExportEncodingError, build_export
from .listing import Listing, render_a_record
from .models import FieldError, FieldErrorKind, GuestRecord
from .validator import FieldValidator

# Import built-in rules so they self-register with the global registry.
from . import rules as _builtin_rules  # noqa: F401
