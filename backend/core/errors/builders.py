"""Error builders.

Each builder returns an Err wrapping an AppError with the right code, an
origin, and metadata with empty entries dropped.
"""
from uuid import UUID

from .types import AppError, ErrorCode, ErrorContext, Err


def _err(
    code: ErrorCode,
    message: str,
    *,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in metadata.items() if v is not None},
        cause=cause,
    ))


def _with_reason(message: str, reason: str) -> str:
    return f"{message}: {reason}" if reason else message


# -- E2xxx: user input and schema authoring ---------------------------------

def validation_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC,
    field: str | None = None,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    return _err(code, message, origin=origin, field=field, **metadata)


def schema_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E2033_MALFORMED_SCHEMA,
    path: str | None = None,
    origin: str = "compiler",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    """A defect in a schema document, not in submitted data."""
    return _err(code, message, origin=origin, cause=cause, path=path, **metadata)


def submission_rejected(errors: list[dict], origin: str = "") -> Err[AppError]:
    count = len(errors)
    return validation_error(
        f"Submission rejected: {count} error{'s' if count != 1 else ''}",
        code=ErrorCode.E2040_AUTHORITATIVE_VALIDATION_FAILED,
        origin=origin,
        error_count=count,
        errors=errors,
    )


# -- E4xxx: persistence -----------------------------------------------------

def not_found(entity: str, id: str | UUID | None = None, origin: str = "") -> Err[AppError]:
    message = f"{entity} not found: {id}" if id else f"{entity} not found"
    return _err(
        ErrorCode.E4010_NOT_FOUND,
        message,
        origin=origin,
        entity=entity,
        entity_id=str(id) if id else None,
    )


def duplicate_key(table: str, column: str, origin: str = "") -> Err[AppError]:
    return _err(
        ErrorCode.E4011_DUPLICATE_KEY,
        f"A {table} row with this {column} already exists",
        origin=origin,
        table=table,
        field=column,
    )


def foreign_key_violation(reason: str = "", origin: str = "") -> Err[AppError]:
    return _err(
        ErrorCode.E4012_FOREIGN_KEY_VIOLATION,
        _with_reason("Referenced row does not exist", reason),
        origin=origin,
    )


def db_connection_failed(reason: str = "", origin: str = "") -> Err[AppError]:
    return _err(ErrorCode.E4001_CONNECTION_FAILED, _with_reason("Database connection failed", reason), origin=origin)


def transaction_failed(reason: str = "", origin: str = "") -> Err[AppError]:
    return _err(ErrorCode.E4003_TRANSACTION_FAILED, _with_reason("Database transaction failed", reason), origin=origin)


# -- E9xxx ------------------------------------------------------------------

def internal_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E9001_UNEXPECTED_ERROR,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    return _err(code, message, origin=origin, cause=cause, **metadata)
