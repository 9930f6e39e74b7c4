"""Tagged failure kinds for the receiving workflow.

Services raise these internally and convert them to a
:class:`~pvzctl.services.result.ServiceError` at the public boundary.
Callers match on ``code`` and ``category``, never on message text.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar


class ErrorCategory(StrEnum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    STORAGE = "storage"
    FORBIDDEN = "forbidden"


class ErrorCode(StrEnum):
    """Closed set of failure codes surfaced to callers."""

    INVALID_CITY = "INVALID_CITY"
    INVALID_KIND = "INVALID_KIND"
    INVALID_CURSOR = "INVALID_CURSOR"
    INVALID_LIMIT = "INVALID_LIMIT"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_ID = "INVALID_ID"
    ALREADY_OPEN = "ALREADY_OPEN"
    NO_OPEN_RECEPTION = "NO_OPEN_RECEPTION"
    NO_ITEMS = "NO_ITEMS"
    NOT_FOUND = "NOT_FOUND"
    POINT_NOT_FOUND = "POINT_NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"
    TIMEOUT = "TIMEOUT"
    FORBIDDEN = "FORBIDDEN"


class ReceivingError(Exception):
    """Base for all classified failures.

    Attributes:
        code: Specific failure code.
        category: Taxonomy bucket derived from the subclass.
        detail: Structured context (ids, offending values).
    """

    category: ClassVar[ErrorCategory]

    def __init__(self, code: ErrorCode, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.detail = detail


class ValidationFailure(ReceivingError):
    """Caller input is wrong. Never retried automatically."""

    category = ErrorCategory.VALIDATION


class ConflictFailure(ReceivingError):
    """A precondition already holds (e.g. a reception is already open)."""

    category = ErrorCategory.CONFLICT


class NotFoundFailure(ReceivingError):
    """The target of the operation does not exist or vanished mid-operation."""

    category = ErrorCategory.NOT_FOUND


class StorageFailure(ReceivingError):
    """Connectivity or query failure in the storage layer.

    ``retryable`` is True only when the failed operation was a read.
    """

    category = ErrorCategory.STORAGE

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        retryable: bool = False,
        **detail: Any,
    ) -> None:
        super().__init__(code, message, **detail)
        self.retryable = retryable


class ForbiddenFailure(ReceivingError):
    """The caller's role does not permit the operation."""

    category = ErrorCategory.FORBIDDEN
