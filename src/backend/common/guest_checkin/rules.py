from __future__ import annotations

from .registry import register_rule
from .rule import DateFieldRule, FixedLengthFieldRule, LengthFieldRule


# Registration order is the order failures appear in a record's error summary.
CHECK_IN = register_rule(DateFieldRule("check_in", "check in date"))
CHECK_OUT = register_rule(DateFieldRule("check_out", "check out date"))
SURNAME = register_rule(LengthFieldRule("surname", "surname", min_chars=1, max_chars=50))
FIRST_NAME = register_rule(LengthFieldRule("first_name", "first name", min_chars=0, max_chars=24))
BIRTH_DATE = register_rule(DateFieldRule("birth_date", "date of birth"))
COUNTRY_OF_CITIZENSHIP = register_rule(
    FixedLengthFieldRule("country_of_citizenship", "country of citizenship", chars=3)
)
ADDRESS_ABROAD = register_rule(
    LengthFieldRule("address_abroad", "address abroad", min_chars=0, max_chars=255)
)
TRAVEL_DOC_NUMBER = register_rule(
    LengthFieldRule("travel_doc_number", "travel doc number", min_chars=6, max_chars=30)
)
VISA_NUMBER = register_rule(LengthFieldRule("visa_number", "visa number", min_chars=0, max_chars=15))
PURPOSE_OF_STAY = register_rule(FixedLengthFieldRule("purpose_of_stay", "purpose of stay", chars=2))

__all__ = [
    "CHECK_IN",
    "CHECK_OUT",
    "SURNAME",
    "FIRST_NAME",
    "BIRTH_DATE",
    "COUNTRY_OF_CITIZENSHIP",
    "ADDRESS_ABROAD",
    "TRAVEL_DOC_NUMBER",
    "VISA_NUMBER",
    "PURPOSE_OF_STAY",
]
