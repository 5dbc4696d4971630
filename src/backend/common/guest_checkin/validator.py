from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from .models import FieldError, FieldErrorKind
from .registry import registry
from .rule import FieldRule

# Built-in rules must be registered before `default_validator` snapshots the registry.
from . import rules as _builtin_rules  # noqa: F401

logger = logging.getLogger(__name__)


class FieldValidator:
    """Runs every field rule against a set of values; failures never short-circuit."""

    def __init__(self, rules: Optional[Iterable[FieldRule]] = None):
        self._rules = list(rules) if rules is not None else registry.all()

    @property
    def field_names(self) -> list[str]:
        return [rule.field_name for rule in self._rules]

    def validate(
        self,
        values: Mapping[str, str],
        *,
        missing_fields: Iterable[str] = (),
        context: str = "",
    ) -> list[FieldError]:
        missing_fields = tuple(missing_fields)
        missing = set(missing_fields)
        errors: list[FieldError] = []
        for rule in self._rules:
            if rule.field_name in missing:
                errors.append(
                    FieldError(
                        field=rule.field_name,
                        display_name=rule.display_name,
                        kind=FieldErrorKind.MISSING,
                    )
                )
            elif not rule.check(values.get(rule.field_name, "")):
                errors.append(
                    FieldError(
                        field=rule.field_name,
                        display_name=rule.display_name,
                        kind=FieldErrorKind.INVALID,
                    )
                )

        # Columns without a format rule can still be absent from the source row.
        validated = set(self.field_names)
        for field_name in missing_fields:
            if field_name in validated:
                continue
            errors.append(
                FieldError(
                    field=field_name,
                    display_name=field_name.replace("_", " "),
                    kind=FieldErrorKind.MISSING,
                )
            )

        for error in errors:
            logger.warning("%s: %s", context or "Guest", error.message)
        return errors


default_validator = FieldValidator()
