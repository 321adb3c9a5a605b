"""Form Registry API with Monadic Error Handling

Registers named forms, serves their compiled rules, and accepts
submissions through dual validation. Rejected submissions are stored with
their error list and answered with a structured 400.
"""
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db, fetch_one, fetch_many, create_entity
from core.errors import raise_error, raise_result
from core.logging import api_logger
from engines.compiler import compile_rules
from engines.submission import DualValidation
from formschema.nodes import SchemaNode
from formschema.wire import WireDocument, to_schema_node
from models.forms import FormDefinition, FormSubmission
from api.rules import RuleSetResponse, SchemaPayload

router = APIRouter()
log = api_logger()


class FormCreate(SchemaPayload):
    name: str = Field(min_length=1, max_length=100)


class FormResponse(BaseModel):
    id: UUID
    name: str
    document: dict
    created_at: datetime

    class Config:
        from_attributes = True


class SubmissionCreate(BaseModel):
    data: Any = None
    ui_accepted: bool | None = None


class SubmissionResponse(BaseModel):
    id: UUID
    form_id: UUID
    status: str
    ui_accepted: bool
    data: Any = None
    errors: list[dict] = []
    created_at: datetime

    class Config:
        from_attributes = True


def _schema_of(form: FormDefinition) -> SchemaNode:
    return to_schema_node(WireDocument.model_validate(form.document))


async def _load_form(db: AsyncSession, form_id: UUID) -> FormDefinition:
    result = await fetch_one(db, FormDefinition, form_id, "Form")
    raise_result(result)
    return result.unwrap()


@router.post("", response_model=FormResponse, status_code=201)
async def register_form(payload: FormCreate, db: AsyncSession = Depends(get_db)):
    """Register a form. The schema is compiled now so authoring defects surface at once."""
    document = payload.document()
    ruleset = compile_rules(to_schema_node(document))

    form = FormDefinition(name=payload.name, document=document.to_json_dict())
    result = await create_entity(db, form)
    raise_result(result)

    log.info("form_registered", form_name=payload.name, field_count=len(ruleset))
    return result.unwrap()


@router.get("/{form_id}", response_model=FormResponse)
async def get_form(form_id: UUID, db: AsyncSession = Depends(get_db)):
    return await _load_form(db, form_id)


@router.get("/{form_id}/rules", response_model=RuleSetResponse)
async def get_form_rules(form_id: UUID, db: AsyncSession = Depends(get_db)):
    """Compiled UI rules for a registered form."""
    form = await _load_form(db, form_id)
    return RuleSetResponse.from_ruleset(compile_rules(_schema_of(form)))


@router.post("/{form_id}/submissions", response_model=SubmissionResponse, status_code=201)
async def submit_form(form_id: UUID, payload: SubmissionCreate, db: AsyncSession = Depends(get_db)):
    """Submit data. Acceptance depends only on authoritative validation."""
    form = await _load_form(db, form_id)
    outcome = DualValidation(_schema_of(form)).submit(payload.data, ui_accepted=payload.ui_accepted)

    errors = []
    if outcome.failure is not None:
        errors = [
            {"path": d.field_path, "constraint": d.constraint, "message": d.message}
            for d in outcome.failure.details
        ]

    submission = FormSubmission(
        form_id=form.id,
        status=outcome.state.value,
        ui_accepted=outcome.ui_accepted,
        data=outcome.data if outcome.accepted else None,
        errors=errors,
    )
    result = await create_entity(db, submission)
    raise_result(result)
    stored = result.unwrap()

    log.info(
        "submission_recorded",
        form_id=str(form.id),
        status=stored.status,
        ui_accepted=outcome.ui_accepted,
        ui_bypassed=outcome.ui_bypassed,
    )

    if not outcome.accepted:
        raise_error(outcome.failure.to_app_error().with_metadata(submission_id=str(stored.id)))
    return stored


@router.get("/{form_id}/submissions", response_model=list[SubmissionResponse])
async def list_submissions(
    form_id: UUID,
    limit: int = Query(50, le=500),
    db: AsyncSession = Depends(get_db),
):
    form = await _load_form(db, form_id)
    result = await fetch_many(
        db,
        FormSubmission,
        order_by=FormSubmission.created_at,
        limit=limit,
        form_id=form.id,
    )
    raise_result(result)
    return result.unwrap()
