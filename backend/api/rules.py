"""Rule Compilation API

Compiles wire-format schemas into UI rule sets, runs the authoritative
validator and previews the UI verdict. Schema-authoring defects surface as
structured 400s through the registered SchemaCompileError handler.
"""
from typing import Any, Literal

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from core.errors import Err, Ok
from core.logging import api_logger
from engines.compiler import CompileOptions, RuleSet, compile_rules
from engines.preview import check_rules
from engines.validator import validate
from formschema.nodes import SchemaNode
from formschema.wire import WireDocument, WireNode, to_schema_node

router = APIRouter()
log = api_logger()


class CompileOptionsPayload(BaseModel):
    trigger: Literal["blur", "change", "blur_and_change"] | None = None
    merge_policy: Literal["list", "collapse_bounds"] | None = None


class SchemaPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_: WireNode = Field(alias="schema")
    definitions: dict[str, WireNode] = Field(default_factory=dict)

    def document(self) -> WireDocument:
        return WireDocument(schema=self.schema_, definitions=self.definitions)

    def to_node(self) -> SchemaNode:
        return to_schema_node(self.document())


class CompileRequest(SchemaPayload):
    options: CompileOptionsPayload | None = None


class ValueRequest(SchemaPayload):
    value: Any = None


class RuleSetResponse(BaseModel):
    fields: dict[str, list[dict[str, Any]]]
    field_count: int
    rule_count: int

    @classmethod
    def from_ruleset(cls, ruleset: RuleSet) -> "RuleSetResponse":
        return cls(fields=ruleset.to_dict(), field_count=len(ruleset), rule_count=ruleset.rule_count)


class FieldError(BaseModel):
    path: str
    constraint: str
    message: str


class ValidationResponse(BaseModel):
    valid: bool
    data: Any = None
    errors: list[FieldError] = []


class PreviewResponse(BaseModel):
    accepted: bool
    checked_fields: int
    violations: list[dict[str, str]]
    fields: dict[str, list[str]]


@router.post("/compile", response_model=RuleSetResponse)
async def compile_schema(payload: CompileRequest):
    """Compile a schema document into per-field UI rules."""
    options = None
    if payload.options is not None:
        options = CompileOptions.from_settings(
            trigger=payload.options.trigger,
            merge_policy=payload.options.merge_policy,
        )
    ruleset = compile_rules(payload.to_node(), options)
    log.info("schema_compiled", field_count=len(ruleset), rule_count=ruleset.rule_count)
    return RuleSetResponse.from_ruleset(ruleset)


@router.post("/validate", response_model=ValidationResponse)
async def validate_value(payload: ValueRequest):
    """Run authoritative validation. A rejected value is a normal 200 answer here."""
    match validate(payload.to_node(), payload.value):
        case Ok(data):
            return ValidationResponse(valid=True, data=data)
        case Err(failure):
            return ValidationResponse(
                valid=False,
                errors=[
                    FieldError(path=d.field_path, constraint=d.constraint, message=d.message)
                    for d in failure.details
                ],
            )


@router.post("/preview", response_model=PreviewResponse)
async def preview_rules(payload: ValueRequest):
    """Evaluate the compiled UI rules against a value (advisory)."""
    ruleset = compile_rules(payload.to_node())
    return PreviewResponse(**check_rules(ruleset, payload.value).to_dict())
