"""Schema tree.

SchemaNode is a tagged variant: `kind` selects which of the remaining
attributes are meaningful, so consumers dispatch with a `match` on
`node.kind` rather than on subclasses. Nodes are immutable and hashable;
every fluent method returns a new node.

    kind       meaningful attributes
    PRIMITIVE  primitive, constraints
    OPTIONAL   children == (inner,)
    NULLABLE   children == (inner,)
    ARRAY      children == (element,), constraints (item counts)
    OBJECT     fields (declaration order)
    UNION      children (alternatives)

Refinements may sit on any node. They are checked by authoritative
validation only and never become UI rules.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable

from engines.errors import MalformedSchema
from formschema.constraints import (
    ARRAY_KINDS,
    FLAG_KINDS,
    NUMBER_KINDS,
    STRING_KINDS,
    TRIGGERS,
    Constraint,
    ConstraintKind,
    coerce_kind,
)


class NodeKind(str, Enum):
    PRIMITIVE = "primitive"
    OPTIONAL = "optional"
    NULLABLE = "nullable"
    ARRAY = "array"
    OBJECT = "object"
    UNION = "union"


class PrimitiveType(str, Enum):
    STRING = "String"
    NUMBER = "Number"
    BOOLEAN = "Boolean"


@dataclass(frozen=True, slots=True)
class Refinement:
    """A check the UI rule vocabulary cannot express (e.g. cross-field equality).

    `check` receives the node's validated value and returns True when it
    holds. Failures are reported at the node's path extended by `path`.
    """
    check: Callable[[Any], bool]
    message: str
    path: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SchemaNode:
    kind: NodeKind
    primitive: PrimitiveType | None = None
    children: tuple[SchemaNode, ...] = ()
    fields: tuple[tuple[str, SchemaNode], ...] = ()
    constraints: tuple[Constraint, ...] = ()
    refinements: tuple[Refinement, ...] = ()

    # ------------------------------------------------------------------
    # Structural access
    # ------------------------------------------------------------------

    @property
    def child(self) -> SchemaNode:
        """The single wrapped node of OPTIONAL, NULLABLE and ARRAY nodes."""
        if self.kind not in (NodeKind.OPTIONAL, NodeKind.NULLABLE, NodeKind.ARRAY) or len(self.children) != 1:
            raise MalformedSchema(f"{self.kind.value} node has no single child")
        return self.children[0]

    @property
    def field_map(self) -> dict[str, SchemaNode]:
        return dict(self.fields)

    @property
    def is_wrapper(self) -> bool:
        return self.kind in (NodeKind.OPTIONAL, NodeKind.NULLABLE)

    def unwrap(self) -> SchemaNode:
        """Strip OPTIONAL/NULLABLE wrappers."""
        node = self
        while node.is_wrapper:
            node = node.child
        return node

    @property
    def type_tag(self) -> str:
        """Rule type tag of this node once wrappers are stripped."""
        node = self.unwrap()
        match node.kind:
            case NodeKind.PRIMITIVE:
                return node.primitive.value
            case NodeKind.ARRAY:
                return "Array"
            case NodeKind.OBJECT:
                return "Object"
            case NodeKind.UNION:
                return "Union"
        raise MalformedSchema(f"Unknown node kind {node.kind!r}")

    # ------------------------------------------------------------------
    # Constraint attachment
    # ------------------------------------------------------------------

    def constrain(
        self,
        kind: ConstraintKind | str,
        value: Any = None,
        *,
        message: str | None = None,
        trigger: str | None = None,
    ) -> SchemaNode:
        """Attach a constraint. Unknown kinds are kept verbatim for the compiler to reject."""
        if self.kind not in (NodeKind.PRIMITIVE, NodeKind.ARRAY):
            raise MalformedSchema(f"Constraints cannot be attached to a {self.kind.value} node")
        if trigger is not None and trigger not in TRIGGERS:
            raise MalformedSchema(f"Unknown trigger '{trigger}', expected one of {', '.join(TRIGGERS)}")

        kind = coerce_kind(kind)
        if isinstance(kind, ConstraintKind):
            self._check_applicable(kind)
            value = _check_value(kind, value)

        constraint = Constraint(kind=kind, value=value, message=message, trigger=trigger)
        return replace(self, constraints=(*self.constraints, constraint))

    def _check_applicable(self, kind: ConstraintKind) -> None:
        if self.kind is NodeKind.ARRAY:
            allowed = ARRAY_KINDS
        elif self.primitive is PrimitiveType.STRING:
            allowed = STRING_KINDS
        elif self.primitive is PrimitiveType.NUMBER:
            allowed = NUMBER_KINDS
        else:
            allowed = frozenset()
        if kind not in allowed:
            raise MalformedSchema(f"Constraint '{kind.value}' does not apply to {self.type_tag} nodes")

    def _by_type(self, string_kind, number_kind, array_kind) -> ConstraintKind:
        if self.kind is NodeKind.ARRAY and array_kind is not None:
            return array_kind
        if self.primitive is PrimitiveType.STRING and string_kind is not None:
            return string_kind
        if self.primitive is PrimitiveType.NUMBER and number_kind is not None:
            return number_kind
        raise MalformedSchema(f"Bound does not apply to a {self.kind.value} node")

    def min(self, n, *, message: str | None = None, trigger: str | None = None) -> SchemaNode:
        kind = self._by_type(ConstraintKind.MIN_LENGTH, ConstraintKind.GTE, ConstraintKind.MIN_ITEMS)
        return self.constrain(kind, n, message=message, trigger=trigger)

    def max(self, n, *, message: str | None = None, trigger: str | None = None) -> SchemaNode:
        kind = self._by_type(ConstraintKind.MAX_LENGTH, ConstraintKind.LTE, ConstraintKind.MAX_ITEMS)
        return self.constrain(kind, n, message=message, trigger=trigger)

    def length(self, n: int, *, message: str | None = None, trigger: str | None = None) -> SchemaNode:
        kind = self._by_type(ConstraintKind.LENGTH, None, ConstraintKind.ITEMS_LENGTH)
        return self.constrain(kind, n, message=message, trigger=trigger)

    def gt(self, n, *, message: str | None = None, trigger: str | None = None) -> SchemaNode:
        return self.constrain(ConstraintKind.GT, n, message=message, trigger=trigger)

    def gte(self, n, *, message: str | None = None, trigger: str | None = None) -> SchemaNode:
        return self.constrain(ConstraintKind.GTE, n, message=message, trigger=trigger)

    def lt(self, n, *, message: str | None = None, trigger: str | None = None) -> SchemaNode:
        return self.constrain(ConstraintKind.LT, n, message=message, trigger=trigger)

    def lte(self, n, *, message: str | None = None, trigger: str | None = None) -> SchemaNode:
        return self.constrain(ConstraintKind.LTE, n, message=message, trigger=trigger)

    def email(self, *, message: str | None = None, trigger: str | None = None) -> SchemaNode:
        return self.constrain(ConstraintKind.EMAIL, message=message, trigger=trigger)

    def url(self, *, message: str | None = None, trigger: str | None = None) -> SchemaNode:
        return self.constrain(ConstraintKind.URL, message=message, trigger=trigger)

    def regex(self, pattern: str, *, message: str | None = None, trigger: str | None = None) -> SchemaNode:
        return self.constrain(ConstraintKind.PATTERN, pattern, message=message, trigger=trigger)

    # ------------------------------------------------------------------
    # Combinators
    # ------------------------------------------------------------------

    def optional(self) -> SchemaNode:
        return SchemaNode(kind=NodeKind.OPTIONAL, children=(self,))

    def nullable(self) -> SchemaNode:
        return SchemaNode(kind=NodeKind.NULLABLE, children=(self,))

    def refine(
        self,
        check: Callable[[Any], bool],
        message: str,
        path: tuple[str, ...] | list[str] = (),
    ) -> SchemaNode:
        if not callable(check):
            raise MalformedSchema("Refinement check must be callable")
        if not message:
            raise MalformedSchema("Refinement requires a message")
        refinement = Refinement(check=check, message=message, path=tuple(path))
        return replace(self, refinements=(*self.refinements, refinement))


def _check_value(kind: ConstraintKind, value: Any) -> Any:
    if kind in FLAG_KINDS:
        if value not in (None, True):
            raise MalformedSchema(f"Constraint '{kind.value}' takes no value")
        return None

    if kind is ConstraintKind.PATTERN:
        if not isinstance(value, str):
            raise MalformedSchema("Pattern constraint requires a regex string")
        try:
            re.compile(value)
        except re.error as exc:
            raise MalformedSchema(f"Invalid pattern '{value}': {exc}") from exc
        return value

    if kind in NUMBER_KINDS:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
            raise MalformedSchema(f"Constraint '{kind.value}' requires a numeric bound, got {value!r}")
        return value

    # length and item counts
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedSchema(f"Constraint '{kind.value}' requires a non-negative integer, got {value!r}")
    return value
