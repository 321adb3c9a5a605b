"""Fluent schema builders.

    from formschema.builders import obj, string, boolean

    login = obj({
        "username": string().min(3).max(20),
        "password": string().min(6),
        "rememberMe": boolean().optional(),
    })
"""
from __future__ import annotations

from typing import Mapping

from engines.errors import MalformedSchema
from formschema.nodes import NodeKind, PrimitiveType, SchemaNode


def _require_node(value, what: str) -> SchemaNode:
    if not isinstance(value, SchemaNode):
        raise MalformedSchema(f"{what} must be a schema node, got {type(value).__name__}")
    return value


def string() -> SchemaNode:
    return SchemaNode(kind=NodeKind.PRIMITIVE, primitive=PrimitiveType.STRING)


def number() -> SchemaNode:
    return SchemaNode(kind=NodeKind.PRIMITIVE, primitive=PrimitiveType.NUMBER)


def boolean() -> SchemaNode:
    return SchemaNode(kind=NodeKind.PRIMITIVE, primitive=PrimitiveType.BOOLEAN)


def array(element: SchemaNode) -> SchemaNode:
    return SchemaNode(kind=NodeKind.ARRAY, children=(_require_node(element, "Array element"),))


def obj(fields: Mapping[str, SchemaNode] | None = None, **kwargs: SchemaNode) -> SchemaNode:
    """Object node. Field order is the mapping's insertion order, then kwargs."""
    merged = {**(fields or {}), **kwargs}
    for name, node in merged.items():
        if not isinstance(name, str):
            raise MalformedSchema(f"Field names must be strings, got {name!r}")
        _require_node(node, f"Field '{name}'")
    return SchemaNode(kind=NodeKind.OBJECT, fields=tuple(merged.items()))


def union(*alternatives: SchemaNode) -> SchemaNode:
    if not alternatives:
        raise MalformedSchema("Union requires at least one alternative")
    for alternative in alternatives:
        _require_node(alternative, "Union alternative")
    return SchemaNode(kind=NodeKind.UNION, children=tuple(alternatives))


def optional(node: SchemaNode) -> SchemaNode:
    return _require_node(node, "Optional").optional()


def nullable(node: SchemaNode) -> SchemaNode:
    return _require_node(node, "Nullable").nullable()
