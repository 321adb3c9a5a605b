"""Constraint extraction.

Walks a schema tree and flattens it into per-field constraint lists:

- primitives contribute their constraints at their own path
- optional/nullable wrappers recurse at the same path and mark it not required
- objects recurse into each field (declaration order) and add no entry of their own
- arrays keep item-count constraints at their own path, the element lives at `path[]`
- union alternatives all recurse at the same path; their type tags accumulate

Traversal is depth-bounded, which is the only guard against recursive schemas.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from core.config import settings
from engines.errors import MalformedSchema, RecursiveSchemaUnsupported, UnsupportedConstraintKind
from formschema.constraints import Constraint
from formschema.nodes import NodeKind, SchemaNode
from formschema.paths import FieldPath


@dataclass(frozen=True, slots=True)
class FieldEntry:
    path: FieldPath
    required: bool
    type_tags: tuple[str, ...]
    constraints: tuple[Constraint, ...]


@dataclass(frozen=True, slots=True)
class Extraction:
    """Result of a walk.

    `pairs` is the flat, ordered (path, constraint) sequence; `fields` groups
    it per path in first-seen order and carries each path's derived
    `required` flag and type tags.
    """
    pairs: tuple[tuple[FieldPath, Constraint], ...]
    fields: tuple[FieldEntry, ...]

    def field(self, path: FieldPath) -> FieldEntry | None:
        for entry in self.fields:
            if entry.path == path:
                return entry
        return None


@dataclass(slots=True)
class _Accumulating:
    required: bool = True
    type_tags: list[str] = field(default_factory=list)
    constraints: list[Constraint] = field(default_factory=list)

    def tag(self, name: str) -> None:
        if name not in self.type_tags:
            self.type_tags.append(name)


class _Walker:
    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        self.pairs: list[tuple[FieldPath, Constraint]] = []
        self.entries: dict[FieldPath, _Accumulating] = {}

    def entry(self, path: FieldPath, optional: bool) -> _Accumulating:
        acc = self.entries.get(path)
        if acc is None:
            acc = self.entries[path] = _Accumulating()
        if optional:
            acc.required = False
        return acc

    def collect(self, path: FieldPath, acc: _Accumulating, constraints: tuple[Constraint, ...]) -> None:
        for constraint in constraints:
            if not constraint.is_known:
                raise UnsupportedConstraintKind(constraint.kind, path)
            self.pairs.append((path, constraint))
            acc.constraints.append(constraint)

    def visit(self, node: SchemaNode, path: FieldPath, depth: int, optional: bool, in_union: bool = False) -> None:
        if depth > self.max_depth:
            raise RecursiveSchemaUnsupported(path, self.max_depth)

        match node.kind:
            case NodeKind.OPTIONAL | NodeKind.NULLABLE:
                self.visit(node.child, path, depth + 1, True, in_union)
            case NodeKind.PRIMITIVE:
                acc = self.entry(path, optional)
                acc.tag(node.primitive.value)
                self.collect(path, acc, node.constraints)
            case NodeKind.ARRAY:
                acc = self.entry(path, optional)
                acc.tag("Array")
                self.collect(path, acc, node.constraints)
                self.visit(node.child, path.item(), depth + 1, False)
            case NodeKind.OBJECT:
                if in_union:
                    self.entry(path, optional).tag("Object")
                for name, child in node.fields:
                    self.visit(child, path.child(name), depth + 1, False)
            case NodeKind.UNION:
                self.entry(path, optional)
                for alternative in node.children:
                    self.visit(alternative, path, depth + 1, optional, True)
            case _:
                raise MalformedSchema(f"Unknown node kind {node.kind!r}", path=path)

    def result(self) -> Extraction:
        return Extraction(
            pairs=tuple(self.pairs),
            fields=tuple(
                FieldEntry(
                    path=path,
                    required=acc.required,
                    type_tags=tuple(acc.type_tags),
                    constraints=tuple(acc.constraints),
                )
                for path, acc in self.entries.items()
            ),
        )


def extract(
    node: SchemaNode,
    path: FieldPath | None = None,
    *,
    max_depth: int | None = None,
) -> Extraction:
    """Flatten `node` into ordered (FieldPath, Constraint) pairs plus per-field entries.

    Raises UnsupportedConstraintKind for constraints outside the vocabulary
    and RecursiveSchemaUnsupported past `max_depth` nesting levels.
    """
    walker = _Walker(settings.MAX_SCHEMA_DEPTH if max_depth is None else max_depth)
    walker.visit(node, path if path is not None else FieldPath.root(), 0, False)
    return walker.result()
