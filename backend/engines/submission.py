"""Dual validation at submission.

The compiled RuleSet gates submission in the UI; the schema itself decides.
A submission walks PENDING -> UI_ACCEPTED | UI_REJECTED -> ACCEPTED | REJECTED,
and ends ACCEPTED exactly when authoritative validation succeeds, whatever
the UI said.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from core.errors import Err, Ok, Result
from core.logging import validation_logger
from engines.compiler import CompileOptions, RuleSet, compile_rules
from engines.errors import AuthoritativeValidationFailed
from engines.preview import RuleCheckReport, check_rules
from engines.validator import validate
from formschema.nodes import SchemaNode

log = validation_logger()


class SubmissionState(str, Enum):
    PENDING = "pending"
    UI_ACCEPTED = "ui_accepted"
    UI_REJECTED = "ui_rejected"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    state: SubmissionState
    ui_accepted: bool
    ui_source: str  # "client" or "preview"
    history: tuple[SubmissionState, ...]
    data: Any = None
    failure: AuthoritativeValidationFailed | None = None
    ui_report: RuleCheckReport | None = None

    @property
    def accepted(self) -> bool:
        return self.state is SubmissionState.ACCEPTED

    @property
    def ui_bypassed(self) -> bool:
        """The record reached authoritative validation without UI acceptance."""
        return not self.ui_accepted

    @property
    def errors(self) -> list[tuple[str, str]]:
        return self.failure.errors if self.failure is not None else []

    def to_result(self) -> Result[Any, AuthoritativeValidationFailed]:
        return Ok(self.data) if self.accepted else Err(self.failure)


class DualValidation:
    """Pairs a schema with its compiled UI rules.

        dual = DualValidation(signup_schema)
        dual.rules                      # hand to the form layer
        outcome = dual.submit(payload)  # authoritative on every call
    """

    def __init__(self, schema: SchemaNode, options: CompileOptions | None = None):
        self.schema = schema
        self.rules: RuleSet = compile_rules(schema, options)

    def ui_verdict(self, data: Any) -> RuleCheckReport:
        return check_rules(self.rules, data)

    def submit(self, data: Any, ui_accepted: bool | None = None) -> SubmissionOutcome:
        """Record the UI verdict, then run authoritative validation.

        `ui_accepted` is what the client reported; when absent the verdict is
        computed with the compiled rules.
        """
        history = [SubmissionState.PENDING]
        report = None
        if ui_accepted is None:
            report = self.ui_verdict(data)
            ui_accepted, ui_source = report.accepted, "preview"
        else:
            ui_source = "client"
        history.append(SubmissionState.UI_ACCEPTED if ui_accepted else SubmissionState.UI_REJECTED)

        match validate(self.schema, data):
            case Ok(clean):
                state, payload, failure = SubmissionState.ACCEPTED, clean, None
            case Err(error):
                state, payload, failure = SubmissionState.REJECTED, None, error
        history.append(state)

        if state is SubmissionState.ACCEPTED and not ui_accepted:
            log.info("ui_verdict_overridden", ui_source=ui_source, state=state.value)
        elif state is SubmissionState.REJECTED and ui_accepted:
            log.warning(
                "authoritative_override",
                ui_source=ui_source,
                error_count=len(failure.details),
            )

        return SubmissionOutcome(
            state=state,
            ui_accepted=ui_accepted,
            ui_source=ui_source,
            history=tuple(history),
            data=payload,
            failure=failure,
            ui_report=report,
        )
