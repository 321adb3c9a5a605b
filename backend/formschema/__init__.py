"""Schema authoring model.

The constraint tree (SchemaNode, Constraint, FieldPath) and its producers:
the fluent builders re-exported here, the JSON wire format in
`formschema.wire`, and pydantic models via `formschema.pydantic_adapter`.
"""
from formschema.builders import array, boolean, nullable, number, obj, optional, string, union
from formschema.constraints import Constraint, ConstraintKind
from formschema.nodes import NodeKind, PrimitiveType, Refinement, SchemaNode
from formschema.paths import INDEX, FieldPath

__all__ = [
    "array",
    "boolean",
    "nullable",
    "number",
    "obj",
    "optional",
    "string",
    "union",
    "Constraint",
    "ConstraintKind",
    "NodeKind",
    "PrimitiveType",
    "Refinement",
    "SchemaNode",
    "INDEX",
    "FieldPath",
]
