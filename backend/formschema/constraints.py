"""Constraint vocabulary.

A Constraint is one atomic condition attached to a string, number or array
node. The vocabulary is closed: kinds outside ConstraintKind are carried
through as raw strings so the compiler can reject them by name.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ConstraintKind(str, Enum):
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    LENGTH = "length"
    PATTERN = "pattern"
    EMAIL = "email"
    URL = "url"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    MIN_ITEMS = "min_items"
    MAX_ITEMS = "max_items"
    ITEMS_LENGTH = "items_length"


STRING_KINDS = frozenset({
    ConstraintKind.MIN_LENGTH,
    ConstraintKind.MAX_LENGTH,
    ConstraintKind.LENGTH,
    ConstraintKind.PATTERN,
    ConstraintKind.EMAIL,
    ConstraintKind.URL,
})
NUMBER_KINDS = frozenset({ConstraintKind.GT, ConstraintKind.GTE, ConstraintKind.LT, ConstraintKind.LTE})
ARRAY_KINDS = frozenset({ConstraintKind.MIN_ITEMS, ConstraintKind.MAX_ITEMS, ConstraintKind.ITEMS_LENGTH})

# Kinds that take no value
FLAG_KINDS = frozenset({ConstraintKind.EMAIL, ConstraintKind.URL})

TRIGGERS = ("blur", "change", "blur_and_change")


def coerce_kind(raw: ConstraintKind | str) -> ConstraintKind | str:
    """Map a raw kind name onto the vocabulary, leaving unknown names untouched."""
    if isinstance(raw, ConstraintKind):
        return raw
    try:
        return ConstraintKind(raw)
    except ValueError:
        return raw


@dataclass(frozen=True, slots=True)
class Constraint:
    """A single validation fragment.

    `value` is the kind-specific parameter (a count, a bound or a regex
    source); `message` overrides the generated default; `trigger` overrides
    the compile-wide default trigger for the rule this constraint emits.
    """
    kind: ConstraintKind | str
    value: Any = None
    message: str | None = None
    trigger: str | None = None

    @property
    def params(self) -> Any:
        return self.value

    @property
    def is_known(self) -> bool:
        return isinstance(self.kind, ConstraintKind)

    @property
    def name(self) -> str:
        return self.kind.value if isinstance(self.kind, ConstraintKind) else str(self.kind)
