"""Compiler and validator error taxonomy.

SchemaCompileError subclasses are authoring defects: they are raised, never
recovered inside the compiler, and reach the schema's developer. A failed
authoritative validation is an expected per-request outcome and travels as
the error side of a Result.
"""
from __future__ import annotations

from typing import Any, ClassVar

from core.errors import AppError, ErrorCode, schema_error, submission_rejected
from core.validation.errors import ValidationError


class SchemaCompileError(Exception):
    """Base for schema-authoring defects."""

    code: ClassVar[ErrorCode] = ErrorCode.E2033_MALFORMED_SCHEMA

    def __init__(self, message: str, *, path: Any = None, **metadata: Any):
        super().__init__(message)
        self.message = message
        self.path = path
        self.metadata = metadata

    def to_app_error(self) -> AppError:
        path = str(self.path) if self.path is not None else None
        return schema_error(self.message, code=self.code, path=path, cause=self, **self.metadata).error


class UnsupportedConstraintKind(SchemaCompileError):
    code = ErrorCode.E2030_UNSUPPORTED_CONSTRAINT_KIND

    def __init__(self, kind: Any, path: Any = None):
        kind_name = getattr(kind, "value", kind)
        where = f" at '{path}'" if path is not None else ""
        super().__init__(f"Unsupported constraint kind '{kind_name}'{where}", path=path, kind=str(kind_name))
        self.kind = kind


class RecursiveSchemaUnsupported(SchemaCompileError):
    code = ErrorCode.E2031_RECURSIVE_SCHEMA

    def __init__(self, path: Any, max_depth: int):
        super().__init__(
            f"Schema nesting exceeds {max_depth} levels at '{path}'; recursive schemas are not supported",
            path=path,
            max_depth=max_depth,
        )
        self.max_depth = max_depth


class InvalidTopLevelSchema(SchemaCompileError):
    code = ErrorCode.E2032_INVALID_TOP_LEVEL_SCHEMA

    def __init__(self, kind: Any):
        kind_name = getattr(kind, "value", kind)
        super().__init__(f"Top-level schema must be an object, got {kind_name}", kind=str(kind_name))
        self.kind = kind


class MalformedSchema(SchemaCompileError):
    code = ErrorCode.E2033_MALFORMED_SCHEMA


class AuthoritativeValidationFailed(ValidationError):
    """Submitted value rejected by the schema.

    `errors` is the ordered (path, message) list: field declaration order,
    then constraint declaration order.
    """

    @property
    def errors(self) -> list[tuple[str, str]]:
        return [(d.field_path, d.message) for d in self.details]

    def to_app_error(self) -> AppError:
        details = self.redacted_details()
        return submission_rejected([d.to_dict() for d in details], origin="validator").error
