"""Wire format for schemas.

JSON documents describing a schema tree, validated with pydantic and
converted into SchemaNode. This is how schemas arrive over HTTP and how
registered forms are stored.

    {
      "schema": {
        "type": "object",
        "fields": {
          "password": {"type": "string", "constraints": [{"kind": "min_length", "value": 8}]},
          "confirm": {"type": "string"}
        },
        "refinements": [{"kind": "fields_match", "fields": ["password", "confirm"]}]
      },
      "definitions": {}
    }

`ref` nodes name an entry in `definitions` and are expanded eagerly, so a
self-referencing definition runs into the depth bound.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError as PydanticValidationError,
)

from core.config import settings
from core.validation.errors import ValidationErrorDetail
from engines.errors import MalformedSchema, RecursiveSchemaUnsupported
from formschema import builders
from formschema.nodes import NodeKind, SchemaNode
from formschema.paths import FieldPath

WireType = Literal["string", "number", "boolean", "array", "object", "union", "ref"]
WireTrigger = Literal["blur", "change", "blur_and_change"]


class WireConstraint(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: str = Field(min_length=1)
    value: StrictInt | StrictFloat | StrictStr | None = None
    message: str | None = None
    trigger: WireTrigger | None = None


class WireRefinement(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["fields_match"]
    fields: list[str] = Field(min_length=2, max_length=2)
    message: str | None = None


class WireNode(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: WireType
    optional: bool = False
    nullable: bool = False
    constraints: list[WireConstraint] = Field(default_factory=list)
    items: WireNode | None = None
    fields: dict[str, WireNode] | None = None
    options: list[WireNode] | None = None
    ref: str | None = None
    refinements: list[WireRefinement] = Field(default_factory=list)


class WireDocument(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    schema_: WireNode = Field(alias="schema")
    definitions: dict[str, WireNode] = Field(default_factory=dict)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


WireNode.model_rebuild()


@dataclass(frozen=True, slots=True)
class FieldsMatch:
    """Refinement check: two sibling fields hold equal values."""
    first: str
    second: str

    def __call__(self, value: Any) -> bool:
        if not isinstance(value, Mapping):
            return False
        return value.get(self.first) == value.get(self.second)


def parse_document(payload: Mapping[str, Any]) -> WireDocument:
    """Validate a raw JSON document. Structural problems raise MalformedSchema."""
    try:
        return WireDocument.model_validate(payload)
    except PydanticValidationError as exc:
        details = [ValidationErrorDetail.from_pydantic_error(err).to_dict() for err in exc.errors()]
        raise MalformedSchema(
            f"Schema document is malformed: {len(details)} problem{'s' if len(details) != 1 else ''}",
            errors=details,
        ) from exc


def to_schema_node(
    document: WireDocument | WireNode,
    definitions: Mapping[str, WireNode] | None = None,
    *,
    max_depth: int | None = None,
) -> SchemaNode:
    if isinstance(document, WireDocument):
        root, definitions = document.schema_, {**document.definitions, **(definitions or {})}
    else:
        root = document
    converter = _Converter(definitions or {}, settings.MAX_SCHEMA_DEPTH if max_depth is None else max_depth)
    return converter.convert(root, FieldPath.root(), 0)


def load_schema(payload: Mapping[str, Any], *, max_depth: int | None = None) -> SchemaNode:
    return to_schema_node(parse_document(payload), max_depth=max_depth)


class _Converter:
    def __init__(self, definitions: Mapping[str, WireNode], max_depth: int):
        self.definitions = definitions
        self.max_depth = max_depth

    def convert(self, wire: WireNode, path: FieldPath, depth: int) -> SchemaNode:
        if depth > self.max_depth:
            raise RecursiveSchemaUnsupported(path, self.max_depth)

        node = self._base(wire, path, depth)

        for constraint in wire.constraints:
            try:
                node = node.constrain(
                    constraint.kind,
                    constraint.value,
                    message=constraint.message,
                    trigger=constraint.trigger,
                )
            except MalformedSchema as exc:
                if exc.path is not None:
                    raise
                raise MalformedSchema(exc.message, path=path, **exc.metadata) from exc

        for refinement in wire.refinements:
            node = self._refine(node, refinement, path)

        if wire.nullable:
            node = node.nullable()
        if wire.optional:
            node = node.optional()
        return node

    def _base(self, wire: WireNode, path: FieldPath, depth: int) -> SchemaNode:
        match wire.type:
            case "string":
                return builders.string()
            case "number":
                return builders.number()
            case "boolean":
                return builders.boolean()
            case "array":
                if wire.items is None:
                    raise MalformedSchema("Array node requires 'items'", path=path)
                return builders.array(self.convert(wire.items, path.item(), depth + 1))
            case "object":
                fields = {
                    name: self.convert(child, path.child(name), depth + 1)
                    for name, child in (wire.fields or {}).items()
                }
                return builders.obj(fields)
            case "union":
                if not wire.options:
                    raise MalformedSchema("Union node requires at least one option", path=path)
                return builders.union(*(self.convert(option, path, depth + 1) for option in wire.options))
            case "ref":
                if not wire.ref or wire.ref not in self.definitions:
                    raise MalformedSchema(f"Unknown schema reference '{wire.ref}'", path=path)
                return self.convert(self.definitions[wire.ref], path, depth + 1)
        raise MalformedSchema(f"Unknown node type '{wire.type}'", path=path)

    def _refine(self, node: SchemaNode, refinement: WireRefinement, path: FieldPath) -> SchemaNode:
        first, second = refinement.fields
        target = node.unwrap()
        field_names = target.field_map if target.kind is NodeKind.OBJECT else {}
        missing = [name for name in (first, second) if name not in field_names]
        if missing:
            raise MalformedSchema(
                f"Refinement '{refinement.kind}' names unknown field(s): {', '.join(missing)}",
                path=path,
            )
        message = refinement.message or f"{second} must match {first}"
        return node.refine(FieldsMatch(first, second), message, path=(second,))
