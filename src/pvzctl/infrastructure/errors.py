"""Storage failure taxonomy.

Adapters classify driver exceptions by exception class into a small closed
set of kinds. Nothing above this layer inspects driver error text.
"""

from __future__ import annotations

from enum import StrEnum


class StorageErrorKind(StrEnum):
    CONFLICT = "conflict"  # uniqueness / foreign key rejected the write
    INVALID_INPUT = "invalid_input"  # the call itself was malformed
    TIMEOUT = "timeout"  # the caller's deadline expired
    UNAVAILABLE = "unavailable"  # connection / locking / operational failure
    QUERY = "query"  # anything else the driver raised


class StorageError(Exception):
    """Raised by every :class:`ReceivingStore` implementation on failure."""

    def __init__(self, kind: StorageErrorKind, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.kind = kind
        self.operation = operation
        self.message = message
