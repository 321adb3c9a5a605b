"""Schema trees from pydantic models.

Lets an existing request model drive both the UI rules and the
authoritative check:

    class Signup(BaseModel):
        username: str = Field(min_length=3, max_length=20)
        age: int | None = Field(default=None, ge=13)
        tags: list[str] = Field(default_factory=list, max_length=5)

    rules = compile_rules(from_model(Signup))

Field order follows `model_fields`. Non-required fields become Optional,
`X | None` becomes Nullable, and annotated_types metadata maps onto the
constraint vocabulary.
"""
from __future__ import annotations

import types
from typing import Annotated, Any, Iterable, Union, get_args, get_origin

import annotated_types
from pydantic import AnyUrl, BaseModel, EmailStr, HttpUrl

from core.config import settings
from engines.errors import MalformedSchema, RecursiveSchemaUnsupported
from formschema import builders
from formschema.nodes import NodeKind, PrimitiveType, SchemaNode
from formschema.paths import FieldPath

_URL_TYPES = (AnyUrl, HttpUrl)

# Metadata with no counterpart in the constraint vocabulary (MinLen/MaxLen
# land here only when the node is not sized). Anything else, such as
# Strict, carries no validation rule and is skipped.
_UNSUPPORTED = (
    annotated_types.MinLen,
    annotated_types.MaxLen,
    annotated_types.MultipleOf,
    annotated_types.Predicate,
)


def from_model(model: type[BaseModel], *, max_depth: int | None = None) -> SchemaNode:
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        raise MalformedSchema(f"Expected a pydantic model class, got {model!r}")
    walker = _ModelWalker(settings.MAX_SCHEMA_DEPTH if max_depth is None else max_depth)
    return walker.model(model, FieldPath.root(), 0)


class _ModelWalker:
    def __init__(self, max_depth: int):
        self.max_depth = max_depth

    def _guard(self, path: FieldPath, depth: int) -> None:
        if depth > self.max_depth:
            raise RecursiveSchemaUnsupported(path, self.max_depth)

    def model(self, model: type[BaseModel], path: FieldPath, depth: int) -> SchemaNode:
        self._guard(path, depth)
        fields = {}
        for name, info in model.model_fields.items():
            field_path = path.child(name)
            node = self.annotation(info.annotation, info.metadata, field_path, depth + 1)
            if not info.is_required():
                node = node.optional()
            fields[name] = node
        return builders.obj(fields)

    def annotation(self, tp: Any, metadata: Iterable[Any], path: FieldPath, depth: int) -> SchemaNode:
        self._guard(path, depth)
        origin = get_origin(tp)

        if origin is Annotated:
            base, *extra = get_args(tp)
            return self.annotation(base, [*extra, *metadata], path, depth)

        if origin is Union or origin is types.UnionType:
            args = get_args(tp)
            present = [arg for arg in args if arg is not type(None)]
            if len(present) == 1:
                node = self.annotation(present[0], metadata, path, depth + 1)
            else:
                node = builders.union(*(self.annotation(arg, (), path, depth + 1) for arg in present))
            return node.nullable() if len(present) < len(args) else node

        if origin in (list, tuple, set, frozenset):
            args = [arg for arg in get_args(tp) if arg is not Ellipsis]
            if len(args) != 1:
                raise MalformedSchema(f"Unsupported collection annotation {tp!r}", path=path)
            node = builders.array(self.annotation(args[0], (), path.item(), depth + 1))
            return self._apply(node, metadata, path)

        if tp is bool:
            node = builders.boolean()
        elif tp is str:
            node = builders.string()
        elif tp is EmailStr:
            node = builders.string().email()
        elif tp in _URL_TYPES:
            node = builders.string().url()
        elif tp in (int, float):
            node = builders.number()
        elif isinstance(tp, type) and issubclass(tp, BaseModel):
            node = self.model(tp, path, depth + 1)
        else:
            raise MalformedSchema(f"Unsupported field annotation {tp!r}", path=path)
        return self._apply(node, metadata, path)

    def _apply(self, node: SchemaNode, metadata: Iterable[Any], path: FieldPath) -> SchemaNode:
        for item in metadata:
            try:
                node = self._apply_one(node, item, path)
            except MalformedSchema as exc:
                if exc.path is not None:
                    raise
                raise MalformedSchema(exc.message, path=path) from exc
        return node

    def _apply_one(self, node: SchemaNode, item: Any, path: FieldPath) -> SchemaNode:
        # pydantic keeps `Field(pattern=...)` in a general metadata object
        pattern = getattr(item, "pattern", None)
        if pattern is not None:
            return node.regex(pattern if isinstance(pattern, str) else pattern.pattern)

        sized = node.kind is NodeKind.ARRAY or node.primitive is PrimitiveType.STRING
        match item:
            case annotated_types.MinLen(min_length=n) if sized:
                return node.min(n)
            case annotated_types.MaxLen(max_length=n) if sized:
                return node.max(n)
            case annotated_types.Gt(gt=n):
                return node.gt(n)
            case annotated_types.Ge(ge=n):
                return node.gte(n)
            case annotated_types.Lt(lt=n):
                return node.lt(n)
            case annotated_types.Le(le=n):
                return node.lte(n)

        if isinstance(item, _UNSUPPORTED):
            raise MalformedSchema(f"Unsupported constraint {item!r}", path=path)
        return node
