"""Service-layer outcomes.

Services report expected failures as data instead of raising, so every
call site handles the failure branch explicitly. Handlers map the
:class:`ErrorCode` onto an HTTP status.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCode(str, enum.Enum):
    VALIDATION = "validation"
    UPLOAD = "upload"
    NOT_PUBLISHED = "not_published"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    NOT_FOUND_OR_DENIED = "not_found_or_denied"
    ALREADY_ENROLLED = "already_enrolled"
    CONFLICT = "conflict"
    INTERNAL = "internal"


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    success: bool
    value: T | None = None
    code: ErrorCode | None = None
    message: str | None = None
    details: list[FieldError] = field(default_factory=list)

    @classmethod
    def ok(cls, value: T | None = None) -> Result[T]:
        return cls(success=True, value=value)

    @classmethod
    def fail(
        cls,
        code: ErrorCode,
        message: str,
        details: list[FieldError] | None = None,
    ) -> Result[T]:
        return cls(success=False, code=code, message=message, details=details or [])

    def unwrap(self) -> T:
        if not self.success:
            raise ValueError(f"Result is a failure: {self.code}")
        return self.value  # type: ignore[return-value]


def validation_error(message: str, details: list[FieldError] | None = None) -> Result:
    return Result.fail(ErrorCode.VALIDATION, message, details)


def internal_error(message: str = "Database operation failed") -> Result:
    return Result.fail(ErrorCode.INTERNAL, message)
