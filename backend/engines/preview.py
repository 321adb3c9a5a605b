"""UI rule preview.

Evaluates a compiled RuleSet against form data the way a client-side form
layer would: presence for required fields, type tag, bounds by measure,
pattern search, email/url format. `[]` path segments fan out over list
elements. The verdict is advisory; only authoritative validation decides.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterator

from core.validation import (
    EmailValidator,
    ListLength,
    NumericRange,
    RegexPattern,
    StringLength,
    URLValidator,
    is_number,
)
from engines.compiler import RuleSet
from engines.emitter import Bounds, Rule, required_message, type_message
from formschema.constraints import ConstraintKind
from formschema.paths import INDEX, FieldPath

_EMAIL = EmailValidator()
_URL = URLValidator()


@dataclass(frozen=True, slots=True)
class RuleViolation:
    path: str
    message: str
    rule: Rule

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "message": self.message}


@dataclass(frozen=True, slots=True)
class RuleCheckReport:
    violations: tuple[RuleViolation, ...]
    checked_fields: int

    @property
    def accepted(self) -> bool:
        return not self.violations

    def by_field(self) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = {}
        for violation in self.violations:
            grouped.setdefault(violation.path, []).append(violation.message)
        return grouped

    def to_dict(self) -> dict[str, Any]:
        return {
            "accepted": self.accepted,
            "checked_fields": self.checked_fields,
            "violations": [v.to_dict() for v in self.violations],
            "fields": self.by_field(),
        }


class _Absent:
    __slots__ = ()


_ABSENT = _Absent()


def _instances(data: Any, path: FieldPath) -> Iterator[tuple[FieldPath, Any]]:
    """Concrete (path, value) pairs addressed by a rule path.

    Descendants of an absent container yield nothing, so a nested form that
    is not rendered produces no UI errors.
    """
    frontier: list[tuple[FieldPath, Any]] = [(FieldPath.root(), data)]
    for segment in path.segments:
        next_frontier = []
        for current, value in frontier:
            if segment is INDEX:
                if isinstance(value, (list, tuple)):
                    next_frontier.extend((current.at(i), item) for i, item in enumerate(value))
            elif isinstance(value, Mapping):
                next_frontier.append((current.child(segment), value.get(segment, _ABSENT)))
        frontier = next_frontier
    return iter(frontier)


def _is_empty(value: Any) -> bool:
    return value is _ABSENT or value is None or value == ""


def _matches_tag(tag: str, value: Any) -> bool:
    match tag:
        case "String" | "Email" | "Url":
            return isinstance(value, str)
        case "Number":
            return is_number(value)
        case "Boolean":
            return isinstance(value, bool)
        case "Array":
            return isinstance(value, (list, tuple))
        case "Object":
            return isinstance(value, Mapping)
    return False


def _bounds_hold(bounds: Bounds, value: Any) -> bool | None:
    """True/False when the bounds apply to this value's shape, None when they do not."""
    low, high = (bounds.exact, bounds.exact) if bounds.exact is not None else (bounds.min, bounds.max)
    match bounds.measure:
        case "length" if isinstance(value, str):
            return StringLength(min_length=low, max_length=high).validate(value).is_valid
        case "items" if isinstance(value, (list, tuple)):
            return ListLength(min_length=low, max_length=high).validate(value).is_valid
        case "value" if isinstance(value, (int, float)) and not isinstance(value, bool):
            check = NumericRange(
                min_value=low,
                max_value=high,
                exclusive_min=bounds.exclusive_min,
                exclusive_max=bounds.exclusive_max,
            )
            return check.validate(value).is_valid
    return None


def _rule_holds(rule: Rule, value: Any) -> bool:
    if rule.bounds is not None and _bounds_hold(rule.bounds, value) is False:
        return False
    if rule.pattern is not None and isinstance(value, str):
        if not RegexPattern(rule.pattern).validate(value).is_valid:
            return False
    if rule.constraint is ConstraintKind.EMAIL and isinstance(value, str):
        return _EMAIL.validate(value).is_valid
    if rule.constraint is ConstraintKind.URL and isinstance(value, str):
        return _URL.validate(value).is_valid
    return True


def check_rules(ruleset: RuleSet, data: Any) -> RuleCheckReport:
    violations: list[RuleViolation] = []
    checked = 0

    for path, rules in ruleset.items():
        if not rules:
            continue
        for concrete, value in _instances(data, path):
            checked += 1
            rendered = str(concrete)
            label = concrete.label
            head = rules[0]

            if _is_empty(value):
                if any(rule.required for rule in rules):
                    violations.append(RuleViolation(rendered, required_message(label), head))
                continue

            tags = head.type_tags
            if not any(_matches_tag(tag, value) for tag in tags):
                violations.append(RuleViolation(rendered, type_message(label, head.type_tag), head))
                continue

            for rule in rules:
                if not _rule_holds(rule, value):
                    violations.append(RuleViolation(rendered, rule.message, rule))

    return RuleCheckReport(violations=tuple(violations), checked_fields=checked)
