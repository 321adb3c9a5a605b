"""Error boundary mappers.

Exceptions raised underneath a boundary (SQLAlchemy, schema authoring) are
turned into AppErrors here, so callers above see one error type.
"""
from __future__ import annotations

import re

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from .types import AppError, ErrorCode, ErrorContext
from .builders import (
    db_connection_failed,
    duplicate_key,
    foreign_key_violation,
    internal_error,
    transaction_failed,
)

# SQLite: "UNIQUE constraint failed: form_definitions.name"
# PostgreSQL: 'duplicate key value violates unique constraint "form_definitions_name_key"'
_SQLITE_UNIQUE = re.compile(r"unique constraint failed: (\w+)\.(\w+)", re.IGNORECASE)
_POSTGRES_UNIQUE = re.compile(r'unique constraint "(\w+)_(\w+)_key"', re.IGNORECASE)


def _orig_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class DatabaseErrorMapper:
    """Maps SQLAlchemy exceptions to database-category AppErrors."""

    def __init__(self, origin: str = "database"):
        self.origin = origin

    def map_exception(self, exc: Exception) -> AppError:
        match exc:
            case IntegrityError():
                return self._integrity(exc)
            case OperationalError():
                message = _orig_message(exc)
                lowered = message.lower()
                if "connect" in lowered or "unable to open" in lowered:
                    return db_connection_failed(message, origin=self.origin).error
                return transaction_failed(message, origin=self.origin).error
            case SQLAlchemyError():
                return transaction_failed(str(exc), origin=self.origin).error
        return internal_error(f"Database error: {exc}", origin=self.origin, cause=exc).error

    def _integrity(self, exc: IntegrityError) -> AppError:
        message = _orig_message(exc)
        unique = _SQLITE_UNIQUE.search(message) or _POSTGRES_UNIQUE.search(message)
        if unique:
            return duplicate_key(unique.group(1), unique.group(2), origin=self.origin).error
        if "foreign key" in message.lower():
            return foreign_key_violation(message, origin=self.origin).error
        return AppError(
            code=ErrorCode.E4013_CHECK_CONSTRAINT,
            message=f"Constraint violation: {message}",
            context=ErrorContext(origin=self.origin),
            cause=exc,
        )


class SchemaErrorMapper:
    """Maps schema-authoring exceptions to AppErrors at the HTTP boundary.

    The compiler never recovers from these itself, so the developer who
    posted the schema sees them.
    """

    def __init__(self, origin: str = "compiler"):
        self.origin = origin

    def map_exception(self, exc: Exception) -> AppError:
        to_app_error = getattr(exc, "to_app_error", None)
        if to_app_error is None:
            return internal_error(f"Compiler error: {exc}", origin=self.origin, cause=exc).error
        return to_app_error().with_context(origin=self.origin)
