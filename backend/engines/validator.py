"""Authoritative validation.

Checks a submitted value against the schema itself, independently of any
compiled UI rules. Errors are collected, never fail-fast, in field
declaration order then constraint declaration order, with concrete indices
in their paths.

    match validate(signup_schema, payload):
        case Ok(data):
            save(data)
        case Err(failure):
            return failure.errors   # [("username", "username must be at least 3 characters"), ...]
"""
from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from core.errors import Err, Ok, Result
from core.logging import validation_logger
from core.validation import (
    AtomicValidator,
    CollectAllAccumulator,
    EmailValidator,
    ListLength,
    NumericRange,
    RegexPattern,
    StringLength,
    URLValidator,
    ValidationErrorDetail,
    is_number,
    is_sensitive_field,
)
from engines.emitter import required_message, resolve_message, type_message
from engines.errors import AuthoritativeValidationFailed, MalformedSchema, UnsupportedConstraintKind
from formschema.constraints import Constraint, ConstraintKind
from formschema.nodes import NodeKind, PrimitiveType, SchemaNode
from formschema.paths import FieldPath

log = validation_logger()


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<missing>"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


@lru_cache(maxsize=1024)
def _validator_for(kind: ConstraintKind, value: Any) -> AtomicValidator:
    match kind:
        case ConstraintKind.MIN_LENGTH:
            return StringLength(min_length=value)
        case ConstraintKind.MAX_LENGTH:
            return StringLength(max_length=value)
        case ConstraintKind.LENGTH:
            return StringLength(min_length=value, max_length=value)
        case ConstraintKind.PATTERN:
            return RegexPattern(value)
        case ConstraintKind.EMAIL:
            return EmailValidator()
        case ConstraintKind.URL:
            return URLValidator()
        case ConstraintKind.GT:
            return NumericRange(min_value=value, exclusive_min=True)
        case ConstraintKind.GTE:
            return NumericRange(min_value=value)
        case ConstraintKind.LT:
            return NumericRange(max_value=value, exclusive_max=True)
        case ConstraintKind.LTE:
            return NumericRange(max_value=value)
        case ConstraintKind.MIN_ITEMS:
            return ListLength(min_length=value)
        case ConstraintKind.MAX_ITEMS:
            return ListLength(max_length=value)
        case ConstraintKind.ITEMS_LENGTH:
            return ListLength(min_length=value, max_length=value)
    raise UnsupportedConstraintKind(kind)


def _primitive_matches(primitive: PrimitiveType, value: Any) -> bool:
    match primitive:
        case PrimitiveType.STRING:
            return isinstance(value, str)
        case PrimitiveType.NUMBER:
            return is_number(value)
        case PrimitiveType.BOOLEAN:
            return isinstance(value, bool)
    return False


def _type_matches(node: SchemaNode, value: Any) -> bool:
    """Shallow check: could `node` accept a value of this shape at all?"""
    match node.kind:
        case NodeKind.OPTIONAL:
            return value is MISSING or _type_matches(node.child, value)
        case NodeKind.NULLABLE:
            return value is None or _type_matches(node.child, value)
        case NodeKind.PRIMITIVE:
            return _primitive_matches(node.primitive, value)
        case NodeKind.ARRAY:
            return isinstance(value, (list, tuple))
        case NodeKind.OBJECT:
            return isinstance(value, Mapping)
        case NodeKind.UNION:
            return any(_type_matches(alternative, value) for alternative in node.children)
    return False


def _union_tags(node: SchemaNode) -> tuple[str, ...]:
    tags: list[str] = []
    for alternative in node.children:
        inner = alternative.unwrap()
        for tag in (_union_tags(inner) if inner.kind is NodeKind.UNION else (inner.type_tag,)):
            if tag not in tags:
                tags.append(tag)
    return tuple(tags)


class _Validator:
    def __init__(self, accumulator: CollectAllAccumulator, sensitive: set[str]):
        self.acc = accumulator
        self.sensitive = sensitive

    def fail(self, path: FieldPath, constraint: str, message: str, value: Any = None) -> None:
        self.acc.add_error(ValidationErrorDetail(
            field_path=str(path),
            constraint=constraint,
            actual_value=None if value is MISSING else value,
            message=message,
        ))

    def visit(self, node: SchemaNode, value: Any, path: FieldPath) -> Any:
        errors_before = len(self.acc)
        result = self._visit_kind(node, value, path)
        # refinements see only present values that passed every other check
        if node.refinements and len(self.acc) == errors_before and result is not MISSING and result is not None:
            for refinement in node.refinements:
                if not refinement.check(result):
                    target = path.extend(refinement.path)
                    self.fail(target, "refinement", refinement.message)
        return result

    def _visit_kind(self, node: SchemaNode, value: Any, path: FieldPath) -> Any:
        match node.kind:
            case NodeKind.OPTIONAL:
                return MISSING if value is MISSING else self.visit(node.child, value, path)
            case NodeKind.NULLABLE:
                return None if value is None else self.visit(node.child, value, path)
            case NodeKind.PRIMITIVE:
                return self._primitive(node, value, path)
            case NodeKind.ARRAY:
                return self._array(node, value, path)
            case NodeKind.OBJECT:
                return self._object(node, value, path)
            case NodeKind.UNION:
                return self._union(node, value, path)
        raise MalformedSchema(f"Unknown node kind {node.kind!r}", path=path)

    def _present(self, value: Any, path: FieldPath) -> bool:
        if value is MISSING or value is None:
            self.fail(path, "required", required_message(path.label))
            return False
        return True

    def _constraints(self, constraints: tuple[Constraint, ...], value: Any, path: FieldPath) -> None:
        for constraint in constraints:
            if not constraint.is_known:
                raise UnsupportedConstraintKind(constraint.kind, path)
            outcome = _validator_for(constraint.kind, constraint.value).validate(value)
            if not outcome.is_valid:
                self.fail(path, constraint.name, resolve_message(constraint, path.label, path), value)

    def _primitive(self, node: SchemaNode, value: Any, path: FieldPath) -> Any:
        if not self._present(value, path):
            return value
        if not _primitive_matches(node.primitive, value):
            self.fail(path, "type", type_message(path.label, node.primitive.value), value)
            return value
        self._constraints(node.constraints, value, path)
        return value

    def _array(self, node: SchemaNode, value: Any, path: FieldPath) -> Any:
        if not self._present(value, path):
            return value
        if not isinstance(value, (list, tuple)):
            self.fail(path, "type", type_message(path.label, "Array"), value)
            return value
        self._constraints(node.constraints, value, path)
        return [self.visit(node.child, item, path.at(index)) for index, item in enumerate(value)]

    def _object(self, node: SchemaNode, value: Any, path: FieldPath) -> Any:
        if not self._present(value, path):
            return value
        if not isinstance(value, Mapping):
            self.fail(path, "type", type_message(path.label, "Object"), value)
            return value
        cleaned = {}
        for name, child in node.fields:
            if is_sensitive_field(name):
                self.sensitive.add(name)
            result = self.visit(child, value.get(name, MISSING), path.child(name))
            if result is not MISSING:
                cleaned[name] = result
        return cleaned

    def _union(self, node: SchemaNode, value: Any, path: FieldPath) -> Any:
        first_matching: list[ValidationErrorDetail] | None = None
        for alternative in node.children:
            scratch = _Validator(CollectAllAccumulator(max_errors=None), self.sensitive)
            result = scratch.visit(alternative, value, path)
            if not scratch.acc.has_errors():
                return result
            if first_matching is None and _type_matches(alternative, value):
                first_matching = scratch.acc.get_errors()

        if first_matching is not None:
            self.acc.extend(first_matching)
        elif self._present(value, path):
            self.fail(path, "type", type_message(path.label, _union_tags(node)), value)
        return value


def validate(schema: SchemaNode, value: Any) -> Result[Any, AuthoritativeValidationFailed]:
    """Authoritative check of `value` against `schema`.

    Returns Ok(data) with unknown object keys dropped, or
    Err(AuthoritativeValidationFailed) carrying every violation.
    """
    sensitive: set[str] = set()
    validator = _Validator(CollectAllAccumulator(max_errors=None), sensitive)
    data = validator.visit(schema, value, FieldPath.root())

    if validator.acc.has_errors():
        failure = AuthoritativeValidationFailed(
            message="Submission failed validation",
            details=validator.acc.get_errors(),
            sensitive_fields=frozenset(sensitive),
        )
        log.info(
            "submission_rejected",
            error_count=len(failure.details),
            fields=sorted({d.field_path for d in failure.details}),
        )
        return Err(failure)

    return Ok(None if data is MISSING else data)
