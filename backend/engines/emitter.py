"""Rule emission.

Each constraint maps to exactly one Rule through a closed table keyed by
ConstraintKind. Messages resolve in a fixed order: the constraint's own
message if present, otherwise a deterministic template over the field label
and the constraint's parameter. The authoritative validator uses the same
templates so both layers report identical wording.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from engines.errors import UnsupportedConstraintKind
from formschema.constraints import Constraint, ConstraintKind


class Trigger(str, Enum):
    BLUR = "blur"
    CHANGE = "change"
    BLUR_AND_CHANGE = "blur_and_change"

    def to_wire(self) -> str | list[str]:
        if self is Trigger.BLUR_AND_CHANGE:
            return ["blur", "change"]
        return self.value


TypeTag = str | tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Bounds:
    """Length, value or item-count bounds of one rule.

    `measure` is "length", "value" or "items". `exact` excludes min/max.
    """
    measure: str
    min: int | float | None = None
    max: int | float | None = None
    exact: int | None = None
    exclusive_min: bool = False
    exclusive_max: bool = False

    def merge(self, other: Bounds) -> Bounds | None:
        """Fold two bounds into one when their slots do not overlap."""
        if self.measure != other.measure or self.exact is not None or other.exact is not None:
            return None
        if self.min is not None and other.min is not None:
            return None
        if self.max is not None and other.max is not None:
            return None
        low = self if self.min is not None else other
        high = self if self.max is not None else other
        return Bounds(
            measure=self.measure,
            min=low.min,
            max=high.max,
            exclusive_min=low.exclusive_min if low.min is not None else False,
            exclusive_max=high.exclusive_max if high.max is not None else False,
        )


@dataclass(frozen=True, slots=True)
class Rule:
    trigger: Trigger
    required: bool
    type_tag: TypeTag
    message: str
    bounds: Bounds | None = None
    pattern: str | None = None
    constraint: ConstraintKind | None = None

    @property
    def type_tags(self) -> tuple[str, ...]:
        return self.type_tag if isinstance(self.type_tag, tuple) else (self.type_tag,)

    def to_dict(self) -> dict[str, Any]:
        rendered: dict[str, Any] = {
            "trigger": self.trigger.to_wire(),
            "required": self.required,
            "type": [t.lower() for t in self.type_tag] if isinstance(self.type_tag, tuple) else self.type_tag.lower(),
        }
        if self.bounds is not None:
            if self.bounds.exact is not None:
                rendered["len"] = self.bounds.exact
            if self.bounds.min is not None:
                rendered["min"] = self.bounds.min
                if self.bounds.exclusive_min:
                    rendered["exclusiveMin"] = True
            if self.bounds.max is not None:
                rendered["max"] = self.bounds.max
                if self.bounds.exclusive_max:
                    rendered["exclusiveMax"] = True
        if self.pattern is not None:
            rendered["pattern"] = self.pattern
        rendered["message"] = self.message
        return rendered


# ============================================================================
# Messages
# ============================================================================

_TYPE_PHRASES = {
    "String": "a string",
    "Number": "a number",
    "Boolean": "a boolean",
    "Array": "an array",
    "Object": "an object",
    "Email": "a valid email address",
    "Url": "a valid URL",
}


def format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _count(n: int, noun: str) -> str:
    return f"{format_number(n)} {noun}{'' if n == 1 else 's'}"


def required_message(field_name: str) -> str:
    return f"{field_name} is required"


def type_message(field_name: str, type_tag: TypeTag) -> str:
    tags = type_tag if isinstance(type_tag, tuple) else (type_tag,)
    return f"{field_name} must be {' or '.join(_TYPE_PHRASES.get(t, t.lower()) for t in tags)}"


_TEMPLATES: dict[ConstraintKind, Callable[[str, Any], str]] = {
    ConstraintKind.MIN_LENGTH: lambda f, n: f"{f} must be at least {_count(n, 'character')}",
    ConstraintKind.MAX_LENGTH: lambda f, n: f"{f} must be at most {_count(n, 'character')}",
    ConstraintKind.LENGTH: lambda f, n: f"{f} must be exactly {_count(n, 'character')}",
    ConstraintKind.PATTERN: lambda f, _: f"{f} has an invalid format",
    ConstraintKind.EMAIL: lambda f, _: f"{f} must be a valid email address",
    ConstraintKind.URL: lambda f, _: f"{f} must be a valid URL",
    ConstraintKind.GT: lambda f, n: f"{f} must be greater than {format_number(n)}",
    ConstraintKind.GTE: lambda f, n: f"{f} must be greater than or equal to {format_number(n)}",
    ConstraintKind.LT: lambda f, n: f"{f} must be less than {format_number(n)}",
    ConstraintKind.LTE: lambda f, n: f"{f} must be less than or equal to {format_number(n)}",
    ConstraintKind.MIN_ITEMS: lambda f, n: f"{f} must contain at least {_count(n, 'item')}",
    ConstraintKind.MAX_ITEMS: lambda f, n: f"{f} must contain at most {_count(n, 'item')}",
    ConstraintKind.ITEMS_LENGTH: lambda f, n: f"{f} must contain exactly {_count(n, 'item')}",
}


def resolve_message(constraint: Constraint, field_name: str, path: Any = None) -> str:
    if constraint.message:
        return constraint.message
    template = _TEMPLATES.get(constraint.kind) if constraint.is_known else None
    if template is None:
        raise UnsupportedConstraintKind(constraint.kind, path)
    return template(field_name, constraint.value)


# ============================================================================
# Emission table
# ============================================================================

@dataclass(frozen=True, slots=True)
class _Shape:
    type_tag: str = "String"
    bounds: Bounds | None = None
    pattern: str | None = None
    retags: bool = False


_EMITTERS: dict[ConstraintKind, Callable[[Any], _Shape]] = {
    ConstraintKind.MIN_LENGTH: lambda n: _Shape(bounds=Bounds("length", min=n)),
    ConstraintKind.MAX_LENGTH: lambda n: _Shape(bounds=Bounds("length", max=n)),
    ConstraintKind.LENGTH: lambda n: _Shape(bounds=Bounds("length", exact=n)),
    ConstraintKind.PATTERN: lambda p: _Shape(pattern=p),
    ConstraintKind.EMAIL: lambda _: _Shape("Email", retags=True),
    ConstraintKind.URL: lambda _: _Shape("Url", retags=True),
    ConstraintKind.GT: lambda n: _Shape("Number", bounds=Bounds("value", min=n, exclusive_min=True)),
    ConstraintKind.GTE: lambda n: _Shape("Number", bounds=Bounds("value", min=n)),
    ConstraintKind.LT: lambda n: _Shape("Number", bounds=Bounds("value", max=n, exclusive_max=True)),
    ConstraintKind.LTE: lambda n: _Shape("Number", bounds=Bounds("value", max=n)),
    ConstraintKind.MIN_ITEMS: lambda n: _Shape("Array", bounds=Bounds("items", min=n)),
    ConstraintKind.MAX_ITEMS: lambda n: _Shape("Array", bounds=Bounds("items", max=n)),
    ConstraintKind.ITEMS_LENGTH: lambda n: _Shape("Array", bounds=Bounds("items", exact=n)),
}


def _normalize_tag(type_tag: TypeTag) -> TypeTag:
    if isinstance(type_tag, (tuple, list)):
        tags = tuple(type_tag)
        return tags[0] if len(tags) == 1 else tags
    return type_tag


def _resolve_trigger(constraint: Constraint | None, default: Trigger | str | None) -> Trigger:
    if constraint is not None and constraint.trigger:
        return Trigger(constraint.trigger)
    return Trigger(default) if default is not None else Trigger.BLUR


def emit(
    constraint: Constraint,
    field_name: str,
    required: bool,
    *,
    type_tag: TypeTag | None = None,
    trigger: Trigger | str | None = None,
    path: Any = None,
) -> Rule:
    """Emit the rule for one constraint.

    Without `type_tag` the tag follows the constraint kind: String for
    length and pattern, Number for value bounds, Array for item counts.
    At a union path `type_tag` is the tuple of alternative tags and is kept
    as is; otherwise Email and Url constraints retag their own rule.
    """
    emitter = _EMITTERS.get(constraint.kind) if constraint.is_known else None
    if emitter is None:
        raise UnsupportedConstraintKind(constraint.kind, path)

    shape = emitter(constraint.value)
    tag = shape.type_tag if type_tag is None else _normalize_tag(type_tag)
    if shape.retags and not isinstance(tag, tuple):
        tag = shape.type_tag

    return Rule(
        trigger=_resolve_trigger(constraint, trigger),
        required=required,
        type_tag=tag,
        message=resolve_message(constraint, field_name, path),
        bounds=shape.bounds,
        pattern=shape.pattern,
        constraint=constraint.kind,
    )


def emit_base(
    field_name: str,
    required: bool,
    *,
    type_tag: TypeTag = "String",
    trigger: Trigger | str | None = None,
) -> Rule:
    """Rule for a field that carries no constraints: presence and type only."""
    tag = _normalize_tag(type_tag)
    message = required_message(field_name) if required else type_message(field_name, tag)
    return Rule(
        trigger=_resolve_trigger(None, trigger),
        required=required,
        type_tag=tag,
        message=message,
    )


def collapse_bounds(rules: list[Rule]) -> list[Rule]:
    """Fold adjacent bound rules that target disjoint slots of the same measure."""
    collapsed: list[Rule] = []
    for rule in rules:
        previous = collapsed[-1] if collapsed else None
        if (
            previous is not None
            and previous.bounds is not None
            and rule.bounds is not None
            and previous.pattern is None
            and rule.pattern is None
            and previous.trigger is rule.trigger
            and previous.type_tag == rule.type_tag
            and previous.required == rule.required
        ):
            merged = previous.bounds.merge(rule.bounds)
            if merged is not None:
                collapsed[-1] = Rule(
                    trigger=rule.trigger,
                    required=rule.required,
                    type_tag=rule.type_tag,
                    message=f"{previous.message}; {rule.message}",
                    bounds=merged,
                )
                continue
        collapsed.append(rule)
    return collapsed
