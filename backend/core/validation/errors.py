"""Structured validation errors.

One ValidationErrorDetail per violated check, carrying the rendered field
path, the constraint name, the offending value (redacted when the field is
sensitive) and the message shown to the user:

    {"field": "contacts[0].email", "constraint": "email",
     "value": "not-an-email", "message": "email must be a valid email address"}
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Sequence

from core.errors import AppError, ErrorCode

SENSITIVE_FIELD_FRAGMENTS = ("password", "passwd", "secret", "token")
# Too short to match inside other words ("shipping", "opinion"); matched per word
SENSITIVE_FIELD_WORDS = frozenset({"pin"})

REDACTED = "[REDACTED]"

_WORD_BOUNDARY = re.compile(r"[^A-Za-z0-9]+|(?<=[a-z0-9])(?=[A-Z])")

# Hints for the pydantic error types a malformed request body usually hits
_PYDANTIC_FIXES = {
    "missing": "This field is required",
    "extra_forbidden": "Remove this field",
    "literal_error": "Use one of: {expected}",
    "json_invalid": "Provide valid JSON",
    "list_type": "Provide a list",
    "dict_type": "Provide an object",
    "string_type": "Provide a string",
    "int_type": "Provide an integer",
    "bool_type": "Provide true or false",
}


def is_sensitive_field(name: str) -> bool:
    lowered = name.lower()
    if any(fragment in lowered for fragment in SENSITIVE_FIELD_FRAGMENTS):
        return True
    return any(word.lower() in SENSITIVE_FIELD_WORDS for word in _WORD_BOUNDARY.split(name))


def format_loc(loc: Sequence[str | int]) -> str:
    """Render a pydantic `loc` tuple the way FieldPath renders paths."""
    rendered = ""
    for segment in loc:
        if isinstance(segment, int): rendered += f"[{segment}]"
        else: rendered += f".{segment}" if rendered else str(segment)
    return rendered or "$"


@dataclass(frozen=True, slots=True)
class ValidationErrorDetail:
    field_path: str
    constraint: str
    actual_value: Any = None
    message: str = ""
    suggested_fix: str | None = None

    def redact_if_sensitive(self, sensitive_fields: frozenset[str] | set[str] | None = None) -> ValidationErrorDetail:
        if not sensitive_fields or self.actual_value is None: return self
        parts = self.field_path.replace("[", ".").replace("]", "").split(".")
        return replace(self, actual_value=REDACTED) if sensitive_fields.intersection(parts) else self

    def to_dict(self) -> dict[str, Any]:
        result = {"field": self.field_path, "constraint": self.constraint, "message": self.message}
        if self.actual_value is not None: result["value"] = self.actual_value
        if self.suggested_fix: result["suggested_fix"] = self.suggested_fix
        return result

    @classmethod
    def from_pydantic_error(cls, error: dict[str, Any]) -> ValidationErrorDetail:
        loc = tuple(error.get("loc", ()))
        if loc[:1] == ("body",): loc = loc[1:]
        hint = _PYDANTIC_FIXES.get(error.get("type", ""))
        if hint is not None: hint = hint.format(expected=(error.get("ctx") or {}).get("expected", "?"))
        return cls(field_path=format_loc(loc), constraint=error.get("type", "validation_error"),
            message=error.get("msg", "Validation failed"), suggested_fix=hint)


@dataclass
class ValidationError(Exception):
    """A rejected value: ordered details plus the names of sensitive fields seen."""
    message: str
    details: list[ValidationErrorDetail]
    sensitive_fields: frozenset[str] | None = None

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self) -> str:
        if len(self.details) == 1: return f"{self.details[0].field_path}: {self.details[0].message}"
        return f"{self.message} ({len(self.details)} errors)"

    def redacted_details(self) -> list[ValidationErrorDetail]:
        return [d.redact_if_sensitive(self.sensitive_fields) for d in self.details]

    def to_app_error(self) -> AppError:
        details = self.redacted_details()
        return AppError(code=ErrorCode.E2000_VALIDATION_GENERIC,
            message=str(self) if len(details) == 1 else f"Validation failed: {len(details)} errors",
            metadata={"error_count": len(details), "errors": [d.to_dict() for d in details]})

    def to_dict(self) -> dict[str, Any]:
        details = self.redacted_details()
        return {"error": {"type": "validation_error", "message": self.message,
            "error_count": len(details), "errors": [d.to_dict() for d in details]}}


@dataclass
class CollectAllAccumulator:
    """Gathers every error in the order it was reported; `max_errors=None` disables the cap."""
    _errors: list[ValidationErrorDetail] = field(default_factory=list)
    max_errors: int | None = 50

    def add_error(self, detail: ValidationErrorDetail) -> bool:
        """Returns True while more errors may be collected."""
        if self.max_errors is None or len(self._errors) < self.max_errors: self._errors.append(detail)
        return self.max_errors is None or len(self._errors) < self.max_errors

    def extend(self, details: Sequence[ValidationErrorDetail]) -> None:
        for detail in details:
            if not self.add_error(detail): break

    def get_errors(self) -> list[ValidationErrorDetail]: return self._errors.copy()

    def has_errors(self) -> bool: return bool(self._errors)

    def __len__(self) -> int: return len(self._errors)
