"""Tagged results returned by services for expected business outcomes.

Services report not-found, validation, business-rule and conflict outcomes
through these results instead of raising; only infrastructure failures
propagate as exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ServiceErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    REJECTED = "rejected"
    UNAUTHORIZED = "unauthorized"
    CONFLICT = "conflict"


@dataclass
class ServiceResult(Generic[T]):
    success: bool
    message: str
    data: T | None = None
    error: ServiceErrorCode | None = None

    @classmethod
    def ok(cls, data: T, message: str) -> "ServiceResult[T]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: ServiceErrorCode, message: str) -> "ServiceResult[T]":
        return cls(success=False, message=message, error=error)
