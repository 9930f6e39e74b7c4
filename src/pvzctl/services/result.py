"""ServiceResult and ServiceError: what every public service call returns.

Services never raise to their caller. A classified
:class:`~pvzctl.domain.errors.ReceivingError` becomes a failed result via
:meth:`ServiceResult.failure`; the CLI (or any other transport) only
formats results and picks an exit code.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from pvzctl.domain.errors import ReceivingError

Category = Literal["validation", "conflict", "not_found", "storage", "forbidden"]


class ServiceError(BaseModel):
    """Failure payload.

    ``retryable`` is only ever True for storage failures of reads; writes
    (open, add) must be checked for their outcome before being resent.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    category: Category
    retryable: bool = False
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_failure(cls, exc: ReceivingError) -> ServiceError:
        return cls(
            code=str(exc.code),
            message=exc.message,
            category=str(exc.category),  # type: ignore[arg-type]
            retryable=bool(getattr(exc, "retryable", False)),
            detail=exc.detail,
        )


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name (``"open_reception"``, ``"list_points"``, ...).
        data: Operation payload on success, empty on failure.
        warnings: Non-fatal issues.
        error: Set exactly when ``ok`` is False.
        meta: Round-trip counts and, with ``--verbose``, the span tree.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: ReceivingError) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError.from_failure(exc))
