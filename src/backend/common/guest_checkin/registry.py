from __future__ import annotations

from typing import Dict, Iterable

from .rule import FieldRule


class FieldRuleRegistry:
    """Ordered collection of field rules; registration order is validation order."""

    def __init__(self):
        self._rules: Dict[str, FieldRule] = {}

    def register(self, rule: FieldRule) -> None:
        field_name = getattr(rule, "field_name", None)
        if not field_name:
            raise ValueError("Field rule missing field_name")
        if field_name in self._rules:
            raise ValueError(f"Duplicate field rule registered: {field_name}")
        self._rules[field_name] = rule

    def all(self) -> list[FieldRule]:
        return list(self._rules.values())

    def get(self, field_name: str) -> FieldRule:
        return self._rules[field_name]

    def ids(self) -> Iterable[str]:
        return self._rules.keys()


registry = FieldRuleRegistry()


def register_rule(rule: FieldRule) -> FieldRule:
    registry.register(rule)
    return rule
