"""Rule compiler.

`compile_rules` turns an object-shaped schema into a RuleSet: extract, group
by field path (declaration order), derive `required` once per field, emit one
rule per constraint. The result is a pure function of the schema tree and the
options, so it is memoized on both.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, Iterator, Mapping, Sequence

from core.config import Settings, settings
from core.logging import compiler_logger
from engines.emitter import Rule, Trigger, collapse_bounds, emit, emit_base
from engines.errors import InvalidTopLevelSchema, SchemaCompileError
from engines.extractor import extract
from formschema.nodes import NodeKind, SchemaNode
from formschema.paths import FieldPath

log = compiler_logger()


class MergePolicy(str, Enum):
    LIST = "list"
    COLLAPSE_BOUNDS = "collapse_bounds"


@dataclass(frozen=True, slots=True)
class CompileOptions:
    trigger: Trigger = Trigger.BLUR
    merge_policy: MergePolicy = MergePolicy.LIST
    max_depth: int = 32

    @classmethod
    def from_settings(cls, config: Settings | None = None, **overrides: Any) -> CompileOptions:
        config = config or settings
        values = {
            "trigger": Trigger(config.DEFAULT_TRIGGER),
            "merge_policy": MergePolicy(config.RULE_MERGE_POLICY),
            "max_depth": config.MAX_SCHEMA_DEPTH,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(
            trigger=Trigger(values["trigger"]),
            merge_policy=MergePolicy(values["merge_policy"]),
            max_depth=int(values["max_depth"]),
        )


class RuleSet(Mapping[FieldPath, tuple[Rule, ...]]):
    """Immutable, insertion-ordered mapping of field path to its rules.

    Lookups also accept the rendered path string ("address.city", "tags[]").
    """

    __slots__ = ("_rules", "_by_name")

    def __init__(self, entries: Iterable[tuple[FieldPath, Sequence[Rule]]] = ()):
        self._rules: dict[FieldPath, tuple[Rule, ...]] = {path: tuple(rules) for path, rules in entries}
        self._by_name: dict[str, FieldPath] = {str(path): path for path in self._rules}

    def __getitem__(self, key: FieldPath | str) -> tuple[Rule, ...]:
        if isinstance(key, str):
            key = self._by_name[key]
        return self._rules[key]

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return key in self._by_name
        return key in self._rules

    def __iter__(self) -> Iterator[FieldPath]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({', '.join(self._by_name)})"

    @property
    def rule_count(self) -> int:
        return sum(len(rules) for rules in self._rules.values())

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {str(path): [rule.to_dict() for rule in rules] for path, rules in self._rules.items()}


def _compile(schema: SchemaNode, options: CompileOptions) -> RuleSet:
    if schema.kind is not NodeKind.OBJECT:
        raise InvalidTopLevelSchema(schema.kind)

    log.debug("rule_cache_miss", top_level_fields=len(schema.fields), merge_policy=options.merge_policy.value)
    extraction = extract(schema, FieldPath.root(), max_depth=options.max_depth)

    entries = []
    for field in extraction.fields:
        name = field.path.label
        type_tag = field.type_tags if len(field.type_tags) != 1 else field.type_tags[0]
        if field.constraints:
            rules = [
                emit(c, name, field.required, type_tag=type_tag, trigger=options.trigger, path=field.path)
                for c in field.constraints
            ]
        else:
            rules = [emit_base(name, field.required, type_tag=type_tag, trigger=options.trigger)]
        if options.merge_policy is MergePolicy.COLLAPSE_BOUNDS:
            rules = collapse_bounds(rules)
        entries.append((field.path, rules))

    ruleset = RuleSet(entries)
    log.debug("rules_compiled", field_count=len(ruleset), rule_count=ruleset.rule_count)
    return ruleset


_compile_cached = lru_cache(maxsize=settings.RULE_CACHE_SIZE)(_compile)


def compile_rules(schema: SchemaNode, options: CompileOptions | None = None) -> RuleSet:
    """Compile an object schema into its UI RuleSet.

    Raises InvalidTopLevelSchema, UnsupportedConstraintKind or
    RecursiveSchemaUnsupported; no partial RuleSet is ever returned.
    """
    options = options or CompileOptions.from_settings()
    try:
        return _compile_cached(schema, options)
    except SchemaCompileError as exc:
        log.warning("schema_rejected", error_code=exc.code.name, error=exc.message, path=str(exc.path) if exc.path is not None else None)
        raise


def clear_rule_cache() -> None:
    _compile_cached.cache_clear()


def rule_cache_info():
    return _compile_cached.cache_info()
