"""Atomic validators.

Immutable single-purpose checks shared by authoritative validation and the
UI rule preview. They answer only "does this value satisfy the check"; the
field-facing message comes from the rule message templates so both layers
report the same words.
"""
from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Sequence
from urllib.parse import urlparse

_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


def is_number(value: Any) -> bool:
    """Finite int or float. bool is an int subclass but never a number here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not isinstance(value, float) or math.isfinite(value)


@lru_cache(maxsize=512)
def compile_pattern(pattern: str, flags: int = 0) -> re.Pattern:
    return re.compile(pattern, flags)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    constraint: str | None = None
    reason: str | None = None

    @classmethod
    def valid(cls) -> ValidationResult:
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, constraint: str, reason: str) -> ValidationResult:
        return cls(is_valid=False, constraint=constraint, reason=reason)


class AtomicValidator(ABC):
    constraint_name: str = "value"

    @abstractmethod
    def validate(self, value: Any) -> ValidationResult:
        ...

    def __call__(self, value: Any) -> ValidationResult:
        return self.validate(value)

    def _wrong_type(self, expected: str, value: Any) -> ValidationResult:
        return ValidationResult.invalid("type", f"expected {expected}, got {type(value).__name__}")


def _count_within(size: int, low: int | None, high: int | None, unit: str, constraint: str) -> ValidationResult:
    if low is not None and size < low:
        return ValidationResult.invalid(constraint, f"{size} {unit}, minimum {low}")
    if high is not None and size > high:
        return ValidationResult.invalid(constraint, f"{size} {unit}, maximum {high}")
    return ValidationResult.valid()


def _count_constraint(low: int | None, high: int | None, names: tuple[str, str, str]) -> str:
    exact, minimum, maximum = names
    if low is not None and low == high:
        return exact
    return minimum if low is not None else maximum


@dataclass(frozen=True, slots=True)
class StringLength(AtomicValidator):
    """Character count bounds. min == max is an exact length."""
    min_length: int | None = None
    max_length: int | None = None

    @property
    def constraint_name(self) -> str:
        return _count_constraint(self.min_length, self.max_length, ("length", "min_length", "max_length"))

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return self._wrong_type("string", value)
        return _count_within(len(value), self.min_length, self.max_length, "characters", self.constraint_name)


@dataclass(frozen=True, slots=True)
class ListLength(AtomicValidator):
    """Item count bounds. min == max is an exact count."""
    min_length: int | None = None
    max_length: int | None = None

    @property
    def constraint_name(self) -> str:
        return _count_constraint(self.min_length, self.max_length, ("items_length", "min_items", "max_items"))

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, (list, tuple)):
            return self._wrong_type("list", value)
        return _count_within(len(value), self.min_length, self.max_length, "items", self.constraint_name)


@dataclass(frozen=True, slots=True)
class RegexPattern(AtomicValidator):
    """Unanchored search, so `abc` matches anywhere; anchor with ^ and $."""
    pattern: str
    flags: int = 0

    constraint_name = "pattern"

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return self._wrong_type("string", value)
        if compile_pattern(self.pattern, self.flags).search(value) is None:
            return ValidationResult.invalid(self.constraint_name, f"no match for {self.pattern!r}")
        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class EmailValidator(AtomicValidator):
    constraint_name = "email"

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return self._wrong_type("string", value)
        if not _EMAIL_PATTERN.fullmatch(value):
            return ValidationResult.invalid(self.constraint_name, "not an email address")
        return ValidationResult.valid()


@dataclass(frozen=True, slots=True, init=False)
class URLValidator(AtomicValidator):
    """Absolute URL with a host and an allowed scheme (http/https by default)."""
    allowed_schemes: frozenset[str]

    constraint_name = "url"

    def __init__(self, allowed_schemes: Sequence[str] = ("http", "https")):
        object.__setattr__(self, "allowed_schemes", frozenset(allowed_schemes))

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return self._wrong_type("string", value)
        try:
            parsed = urlparse(value)
        except ValueError:
            return ValidationResult.invalid(self.constraint_name, "unparseable URL")
        if parsed.scheme not in self.allowed_schemes:
            return ValidationResult.invalid(self.constraint_name, f"scheme {parsed.scheme!r} not allowed")
        if not parsed.netloc:
            return ValidationResult.invalid(self.constraint_name, "missing host")
        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class NumericRange(AtomicValidator):
    """Inclusive bounds by default; exclusive_min/exclusive_max make them strict."""
    min_value: float | int | None = None
    max_value: float | int | None = None
    exclusive_min: bool = False
    exclusive_max: bool = False

    @property
    def constraint_name(self) -> str:
        if self.min_value is not None:
            return "gt" if self.exclusive_min else "gte"
        return "lt" if self.exclusive_max else "lte"

    def validate(self, value: Any) -> ValidationResult:
        # NaN compares False against every bound
        if not is_number(value):
            return self._wrong_type("finite number", value)
        if self.min_value is not None:
            if value < self.min_value or (self.exclusive_min and value == self.min_value):
                return ValidationResult.invalid(self.constraint_name, f"{value} below {self.min_value}")
        if self.max_value is not None:
            if value > self.max_value or (self.exclusive_max and value == self.max_value):
                return ValidationResult.invalid(self.constraint_name, f"{value} above {self.max_value}")
        return ValidationResult.valid()
