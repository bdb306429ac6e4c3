from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

"""Tagged success/failure result shared by every pipeline stage.

Pipeline functions never raise for data problems. They return a ServiceResult
carrying either ``data`` or a ServiceError with an UPPER_SNAKE code, a human
readable message and optional structured details.
"""

__all__ = [
    "ErrorCode",
    "ServiceError",
    "ServiceResult",
    "success",
    "failure",
]

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Error taxonomy used across parsing, templating and packaging."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    PARSING_ERROR = "PARSING_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_TEMPLATE = "INVALID_TEMPLATE"
    INVALID_TAG = "INVALID_TAG"
    MISSING_REQUIRED_TAGS = "MISSING_REQUIRED_TAGS"
    DUPLICATE_REQUIRED_TAGS = "DUPLICATE_REQUIRED_TAGS"
    FILL_ERROR = "FILL_ERROR"
    CONVERSION_ERROR = "CONVERSION_ERROR"
    REPLACEMENT_ERROR = "REPLACEMENT_ERROR"
    ZIP_ERROR = "ZIP_ERROR"
    NO_BONDS = "NO_BONDS"


@dataclass(frozen=True)
class ServiceError:
    """Structured failure.

    Attributes:
        code: Error classification
        message: Message suitable for showing to the person who uploaded the file
        details: Optional structured context (missing tags, failed bond, samples...)
    """
    code: ErrorCode
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Either ``data`` (success) or ``error`` (failure), never both."""
    data: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return ``data`` or raise ValueError when the result is a failure."""
        if self.error is not None:
            raise ValueError(str(self.error))
        return self.data  # type: ignore[return-value]


def success(data: T) -> ServiceResult[T]:
    return ServiceResult(data=data)


def failure(code: ErrorCode, message: str, details: dict[str, Any] | None = None) -> ServiceResult[Any]:
    return ServiceResult(error=ServiceError(code=code, message=message, details=details))
