"""FastAPI exception handlers.

Every failure leaves the API in the same `{"error": {...}}` envelope:

- AppErrorException: raised by routes that work with Result values
- SchemaCompileError: schema-authoring defects from the compiler (400)
- RequestValidationError: malformed bodies, including malformed wire schemas (400)
- HTTPException: routing-level errors such as unknown paths
- anything else: logged with its traceback, answered with a generic 500
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging import get_logger

from .boundaries import SchemaErrorMapper
from .types import AppError, ErrorCode, ErrorContext

log = get_logger("errors.handlers")

_schema_mapper = SchemaErrorMapper("schema_authoring")

_HTTP_CODES = {
    400: ErrorCode.E2000_VALIDATION_GENERIC,
    404: ErrorCode.E4010_NOT_FOUND,
    409: ErrorCode.E5002_STATE_CONFLICT,
    422: ErrorCode.E2000_VALIDATION_GENERIC,
}


class AppErrorException(Exception):
    """Carries an AppError out of a route handler."""

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))


def _in_request(error: AppError, request: Request, origin: str | None = None) -> AppError:
    return error.with_context(
        correlation_id=request.headers.get("X-Correlation-ID", ""),
        request_id=request.headers.get("X-Request-ID"),
        origin=origin,
    )


def result_to_response(error: AppError) -> JSONResponse:
    status_code = error.code.http_status
    (log.warning if status_code < 500 else log.error)(
        "error_response",
        error_code=error.code.name,
        status=status_code,
        message=error.message,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
    )
    return JSONResponse(status_code=status_code, content=error.to_dict())


async def app_error_handler(request: Request, exc: AppErrorException) -> JSONResponse:
    return result_to_response(_in_request(exc.error, request))


async def schema_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return result_to_response(_in_request(_schema_mapper.map_exception(exc), request))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    status_code = exc.status_code
    default = ErrorCode.E9001_UNEXPECTED_ERROR if status_code >= 500 else ErrorCode.E9000_INTERNAL_GENERIC
    error = AppError(
        code=_HTTP_CODES.get(status_code, default),
        message=str(exc.detail) if exc.detail else f"HTTP {status_code}",
    )
    return result_to_response(_in_request(error, request, origin="http"))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    from core.validation.errors import ValidationError, ValidationErrorDetail

    details = [ValidationErrorDetail.from_pydantic_error(err) for err in exc.errors()]
    error = ValidationError(message="Request validation failed", details=details).to_app_error()
    return result_to_response(_in_request(error, request, origin="request_validation"))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    error = _in_request(
        AppError(
            code=ErrorCode.E9001_UNEXPECTED_ERROR,
            message="An unexpected error occurred",
            context=ErrorContext(origin="unhandled"),
            cause=exc,
        ),
        request,
    )
    log.exception("unhandled_exception", error_type=type(exc).__name__, correlation_id=error.context.correlation_id)
    return result_to_response(error)


def register_error_handlers(app: FastAPI) -> None:
    from engines.errors import SchemaCompileError

    app.add_exception_handler(AppErrorException, app_error_handler)
    app.add_exception_handler(SchemaCompileError, schema_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def raise_error(error: AppError) -> None:
    raise AppErrorException(error)


def raise_result(result) -> None:
    """Raise the error side of a Result; do nothing for Ok.

        result = await fetch_one(db, FormDefinition, form_id)
        raise_result(result)
        form = result.unwrap()
    """
    if result.is_err():
        raise AppErrorException(result.unwrap_err())
