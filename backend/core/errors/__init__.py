"""Error handling: Result values, the AppError taxonomy, builders, boundary
mappers and the FastAPI handlers that render the `{"error": {...}}` envelope.

    from core.errors import Ok, Err, not_found

    async def find_form(db, form_id):
        form = await db.get(FormDefinition, form_id)
        return Ok(form) if form is not None else not_found("Form", form_id)

    match await find_form(db, form_id):
        case Ok(form):
            ...
        case Err(error):
            log.warning("form_lookup_failed", code=error.code.name)
"""
from .types import Result, Ok, Err, AppError, ErrorCode, ErrorContext
from .builders import (
    validation_error,
    schema_error,
    submission_rejected,
    not_found,
    duplicate_key,
    foreign_key_violation,
    db_connection_failed,
    transaction_failed,
    internal_error,
)
from .boundaries import DatabaseErrorMapper, SchemaErrorMapper
from .handlers import (
    AppErrorException,
    register_error_handlers,
    result_to_response,
    raise_error,
    raise_result,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "validation_error",
    "schema_error",
    "submission_rejected",
    "not_found",
    "duplicate_key",
    "foreign_key_violation",
    "db_connection_failed",
    "transaction_failed",
    "internal_error",
    "DatabaseErrorMapper",
    "SchemaErrorMapper",
    "AppErrorException",
    "register_error_handlers",
    "result_to_response",
    "raise_error",
    "raise_result",
]
