"""BaseService: abstract foundation for all pvzctl services.

Every service receives the storage port and the resolved settings at
construction time. Public methods return :class:`ServiceResult`; private
helpers raise :class:`~pvzctl.domain.errors.ReceivingError` subclasses,
which :meth:`BaseService._fail` converts at the boundary.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

from pvzctl.domain.errors import ErrorCode, ReceivingError, StorageFailure
from pvzctl.infrastructure.deadline import Deadline
from pvzctl.infrastructure.errors import StorageError, StorageErrorKind
from pvzctl.services.result import ServiceResult

if TYPE_CHECKING:
    from pvzctl.config.settings import PvzSettings
    from pvzctl.infrastructure.repositories.base import ReceivingStore

log = structlog.get_logger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class PointRegistry(BaseService):
            def create(self, city: str) -> ServiceResult:
                with self._storage("create_point", read=False, city=city):
                    row = self._store.create_point(city, deadline=...)
    """

    def __init__(self, store: ReceivingStore, settings: PvzSettings) -> None:
        self._store = store
        self._settings = settings

    def _deadline(self, deadline: Deadline | None) -> Deadline:
        """Use the caller's deadline, or one derived from the configured timeout."""
        if deadline is not None:
            return deadline
        return Deadline.after(self._settings.database.statement_timeout_seconds)

    @contextmanager
    def _storage(self, op: str, *, read: bool, **context: Any) -> Iterator[None]:
        """Wrap a storage call, turning :class:`StorageError` into :class:`StorageFailure`."""
        try:
            yield
        except StorageError as exc:
            raise self._storage_failure(op, exc, read=read, **context) from exc

    @staticmethod
    def _storage_failure(
        op: str,
        exc: StorageError,
        *,
        read: bool,
        **context: Any,
    ) -> StorageFailure:
        """Log a storage failure with operation context and classify it."""
        code = ErrorCode.TIMEOUT if exc.kind is StorageErrorKind.TIMEOUT else ErrorCode.STORAGE_ERROR
        log.error(
            "storage.failed",
            op=op,
            storage_op=exc.operation,
            kind=str(exc.kind),
            read=read,
            **context,
        )
        return StorageFailure(
            code,
            f"{op} failed in storage ({exc.kind}): {exc.message}",
            retryable=read,
            kind=str(exc.kind),
            **context,
        )

    @staticmethod
    def _fail(op: str, exc: ReceivingError) -> ServiceResult:
        return ServiceResult.failure(op, exc)
