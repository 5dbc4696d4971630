from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


NO_ERRORS_SUMMARY = "No guest input errors found"
ERRORS_SUMMARY_PREFIX = "Input error found in field(s): "


class FieldErrorKind(str, Enum):
    INVALID = "INVALID"
    MISSING = "MISSING"


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    display_name: str
    kind: FieldErrorKind = FieldErrorKind.INVALID

    @property
    def label(self) -> str:
        if self.kind == FieldErrorKind.MISSING:
            return f"{self.display_name} (missing)"
        return self.display_name

    @property
    def message(self) -> str:
        if self.kind == FieldErrorKind.MISSING:
            return f"No value provided for {self.display_name}"
        return f"Invalid input provided for {self.display_name}"


class GuestRecord(BaseModel):
    """One check-in row, validated once at construction.

    `errors` is always derived from the field values (and `missing_fields`);
    any value passed for it is discarded.
    """

    model_config = ConfigDict(frozen=True)

    row_id: str
    timestamp: str = ""
    purpose_of_stay: str = ""
    check_in: str = ""
    check_out: str = ""
    surname: str = ""
    first_name: str = ""
    birth_date: str = ""
    country_of_citizenship: str = ""
    travel_doc_number: str = ""
    visa_number: str = ""
    address_abroad: str = ""
    full_name: str = ""

    missing_fields: Tuple[str, ...] = ()
    errors: Tuple[FieldError, ...] = Field(default=())

    @field_validator("row_id")
    @classmethod
    def _row_id_positive_int(cls, value: str) -> str:
        if not value.isdigit() or int(value) < 1:
            raise ValueError(f"row_id must be a positive integer, got {value!r}")
        return value

    @model_validator(mode="before")
    @classmethod
    def _run_field_rules(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        from .validator import default_validator

        values: Dict[str, Any] = dict(data)
        first_name = values.get("first_name", "")
        surname = values.get("surname", "")
        values["errors"] = tuple(
            default_validator.validate(
                {k: str(v) for k, v in values.items() if isinstance(v, str)},
                missing_fields=values.get("missing_fields", ()) or (),
                context=f"Row {values.get('row_id')}, {first_name} {surname}",
            )
        )
        return values

    def is_valid(self) -> bool:
        return not self.errors

    def error_summary(self) -> str:
        if not self.errors:
            return NO_ERRORS_SUMMARY
        return ERRORS_SUMMARY_PREFIX + ", ".join(err.label for err in self.errors)

    def to_export_line(self) -> str:
        return (
            f"U|{self.check_in}|{self.check_out}|{self.surname}|{self.first_name}||{self.birth_date}|||"
            f"{self.country_of_citizenship}|{self.address_abroad}|{self.travel_doc_number}|"
            f"{self.visa_number}|{self.purpose_of_stay}||"
        )

    @property
    def full_display_name(self) -> str:
        return f"{self.first_name} {self.surname}"

    def __str__(self) -> str:
        return (
            f"Row: {self.row_id}, Timestamp: {self.timestamp}, Purpose_of_Stay: {self.purpose_of_stay}, "
            f"Check_In: {self.check_in}, Check_Out: {self.check_out}, Surname: {self.surname}, "
            f"First_Name: {self.first_name}, Birth_Date: {self.birth_date}, "
            f"Country_of_Citizenship: {self.country_of_citizenship}, Address_Abroad: {self.address_abroad}, "
            f"Full_Name: {self.full_name}"
        )
