from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


DATE_FORMAT = "%d.%m.%Y"


class FieldRule(ABC):
    field_name: str
    display_name: str

    def __init__(self):
        if not getattr(self, "field_name", None):
            raise ValueError("FieldRule must define field_name")
        if not getattr(self, "display_name", None):
            raise ValueError("FieldRule must define display_name")

    @abstractmethod
    def check(self, value: str) -> bool:  # pragma: no cover
        raise NotImplementedError


class DateFieldRule(FieldRule):
    """Value must parse as a calendar date in `DD.MM.YYYY` form."""

    def __init__(self, field_name: str, display_name: str):
        self.field_name = field_name
        self.display_name = display_name
        super().__init__()

    def check(self, value: str) -> bool:
        try:
            datetime.strptime(value, DATE_FORMAT)
        except ValueError:
            return False
        return True


class LengthFieldRule(FieldRule):
    """Character count (not bytes) must fall within [min_chars, max_chars]."""

    def __init__(self, field_name: str, display_name: str, *, min_chars: int, max_chars: int):
        if min_chars < 0 or max_chars < min_chars:
            raise ValueError(f"Invalid length bounds for {field_name}: [{min_chars}, {max_chars}]")
        self.field_name = field_name
        self.display_name = display_name
        self.min_chars = min_chars
        self.max_chars = max_chars
        super().__init__()

    def check(self, value: str) -> bool:
        return self.min_chars <= len(value) <= self.max_chars


class FixedLengthFieldRule(LengthFieldRule):
    def __init__(self, field_name: str, display_name: str, *, chars: int):
        super().__init__(field_name, display_name, min_chars=chars, max_chars=chars)
