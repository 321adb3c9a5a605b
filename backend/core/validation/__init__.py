"""Validation primitives

Atomic validators and structured validation errors shared by the
authoritative validator and the rule preview.

Usage:
    from core.validation import (
        StringLength, RegexPattern, NumericRange,
        ValidationError, ValidationErrorDetail, CollectAllAccumulator,
    )

    acc = CollectAllAccumulator(max_errors=None)
    result = StringLength(min_length=3).validate(value)
    if not result.is_valid:
        acc.add_error(ValidationErrorDetail(
            field_path="username",
            constraint=result.constraint,
            message="username must be at least 3 characters",
        ))
"""

from .validators import (
    ValidationResult,
    AtomicValidator,
    StringLength,
    RegexPattern,
    EmailValidator,
    URLValidator,
    NumericRange,
    ListLength,
    compile_pattern,
    is_number,
)

from .errors import (
    ValidationErrorDetail,
    ValidationError,
    CollectAllAccumulator,
    SENSITIVE_FIELD_FRAGMENTS,
    SENSITIVE_FIELD_WORDS,
    is_sensitive_field,
    format_loc,
)

__all__ = [
    "ValidationResult",
    "AtomicValidator",
    "StringLength",
    "RegexPattern",
    "EmailValidator",
    "URLValidator",
    "NumericRange",
    "ListLength",
    "compile_pattern",
    "is_number",
    "ValidationErrorDetail",
    "ValidationError",
    "CollectAllAccumulator",
    "SENSITIVE_FIELD_FRAGMENTS",
    "SENSITIVE_FIELD_WORDS",
    "is_sensitive_field",
    "format_loc",
]
