"""ReceptionLedger: reception lifecycle and the LIFO item stack.

A point has at most one open (``in_progress``) reception at a time.
Items are appended to it and removed strictly newest-first; closing is a
one-way transition. There are no application-level locks. Mutations rely
on the store's conditional writes instead:

- open: the store rejects a second open reception per point (unique index)
- close: update guarded by ``status = in_progress``; zero rows is a lost race
- remove: delete guarded by "reception still open"; zero rows is a lost race
- add: insert guarded by "reception still open"; nothing is written otherwise
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import structlog

from pvzctl.domain.errors import (
    ConflictFailure,
    ErrorCode,
    NotFoundFailure,
    ReceivingError,
    ValidationFailure,
)
from pvzctl.domain.lifecycle import ReceptionStatus, is_open, is_valid_transition
from pvzctl.domain.types import ALLOWED_KINDS, Item, Reception, is_valid_kind
from pvzctl.infrastructure.deadline import Deadline
from pvzctl.infrastructure.errors import StorageError, StorageErrorKind
from pvzctl.services._helpers import require_uuid, to_item, to_reception
from pvzctl.services.base import BaseService
from pvzctl.services.contracts import (
    ItemData,
    ReceptionData,
    ReceptionDetailData,
    dump_validated,
)
from pvzctl.services.result import ServiceResult
from pvzctl.services.telemetry import traced

log = structlog.get_logger(__name__)


class ReceptionLedger(BaseService):
    """Owns the open/closed state machine per point."""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_open(self, op: str, point_id: str, deadline: Deadline) -> Reception:
        """Resolve the open reception for *point_id* or raise NO_OPEN_RECEPTION."""
        with self._storage(op, read=True, point_id=point_id):
            row = self._store.find_open_reception(point_id, deadline=deadline)
        if row is None or not is_open(row.status):
            log.warning("reception.none_open", op=op, point_id=point_id)
            raise NotFoundFailure(
                ErrorCode.NO_OPEN_RECEPTION,
                f"Point {point_id} has no open reception",
                point_id=point_id,
            )
        return to_reception(row)

    def _open(self, point_id: str, deadline: Deadline) -> Reception:
        op = "open_reception"
        point_id = require_uuid(point_id, "point_id")

        with self._storage(op, read=True, point_id=point_id):
            point = self._store.get_point(point_id, deadline=deadline)
            existing = (
                self._store.find_open_reception(point_id, deadline=deadline)
                if point is not None
                else None
            )
        if point is None:
            raise NotFoundFailure(
                ErrorCode.POINT_NOT_FOUND,
                f"No point found with ID: {point_id}",
                point_id=point_id,
            )
        if existing is not None:
            log.warning("reception.already_open", point_id=point_id, reception_id=existing.id)
            raise ConflictFailure(
                ErrorCode.ALREADY_OPEN,
                f"Point {point_id} already has an open reception",
                point_id=point_id,
                reception_id=existing.id,
            )

        try:
            row = self._store.open_reception(point_id, deadline=deadline)
        except StorageError as exc:
            if exc.kind is StorageErrorKind.CONFLICT:
                # Another open committed between our check and insert.
                log.warning("reception.open_race_lost", point_id=point_id)
                raise ConflictFailure(
                    ErrorCode.ALREADY_OPEN,
                    f"Point {point_id} already has an open reception",
                    point_id=point_id,
                ) from exc
            raise self._storage_failure(op, exc, read=False, point_id=point_id) from exc
        return to_reception(row)

    def _add(self, point_id: str, kind: str, deadline: Deadline) -> Item:
        op = "add_item"
        if not is_valid_kind(kind):
            log.warning("item.invalid_kind", point_id=point_id, kind=kind)
            raise ValidationFailure(
                ErrorCode.INVALID_KIND,
                f"Item kind must be one of: {', '.join(sorted(ALLOWED_KINDS))}",
                kind=kind,
            )
        point_id = require_uuid(point_id, "point_id")

        reception = self._require_open(op, point_id, deadline)
        with self._storage(op, read=False, point_id=point_id, reception_id=reception.id):
            row = self._store.append_item(reception.id, kind, deadline=deadline)
        if row is None:
            # Closed between lookup and insert; nothing was written.
            raise NotFoundFailure(
                ErrorCode.NO_OPEN_RECEPTION,
                f"Reception {reception.id} was closed before the item was added",
                point_id=point_id,
                reception_id=reception.id,
            )
        return to_item(row)

    def _remove_last(self, point_id: str, deadline: Deadline) -> Item:
        op = "remove_last_item"
        point_id = require_uuid(point_id, "point_id")

        reception = self._require_open(op, point_id, deadline)
        with self._storage(op, read=True, reception_id=reception.id):
            newest = self._store.find_newest_item(reception.id, deadline=deadline)
        if newest is None:
            raise NotFoundFailure(
                ErrorCode.NO_ITEMS,
                f"Reception {reception.id} has no items to remove",
                point_id=point_id,
                reception_id=reception.id,
            )

        with self._storage(op, read=False, item_id=newest.id):
            affected = self._store.delete_item(newest.id, deadline=deadline)
        if affected == 0:
            log.warning("item.remove_race_lost", item_id=newest.id, reception_id=reception.id)
            raise NotFoundFailure(
                ErrorCode.NOT_FOUND,
                f"Item {newest.id} vanished before it could be removed",
                item_id=newest.id,
                reception_id=reception.id,
            )
        return to_item(newest)

    def _close(self, point_id: str, deadline: Deadline) -> Reception:
        op = "close_reception"
        point_id = require_uuid(point_id, "point_id")

        reception = self._require_open(op, point_id, deadline)
        target = ReceptionStatus.CLOSED

        affected = 0
        if is_valid_transition(reception.status, target):
            with self._storage(op, read=False, reception_id=reception.id):
                affected = self._store.close_reception_if_open(reception.id, deadline=deadline)
        if affected == 0:
            log.warning("reception.close_race_lost", reception_id=reception.id)
            raise NotFoundFailure(
                ErrorCode.NOT_FOUND,
                f"Reception {reception.id} is already closed or no longer exists",
                reception_id=reception.id,
            )
        return reception.model_copy(update={"status": target})

    # ------------------------------------------------------------------
    # Batch reads (used by the list aggregator; raise on failure)
    # ------------------------------------------------------------------

    def receptions_for_points(
        self,
        point_ids: Sequence[str],
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[Reception]:
        """All receptions of *point_ids* opened within ``[start, end]``, newest first."""
        if not point_ids:
            return []
        with self._storage("list_receptions", read=True, point_count=len(point_ids)):
            rows = self._store.list_receptions_by_point_ids(
                point_ids, start, end, deadline=self._deadline(deadline)
            )
        return [to_reception(r) for r in rows]

    def items_for_receptions(
        self,
        reception_ids: Sequence[str],
        *,
        deadline: Deadline | None = None,
    ) -> list[Item]:
        """All items of *reception_ids*, oldest first."""
        if not reception_ids:
            return []
        with self._storage("list_items", read=True, reception_count=len(reception_ids)):
            rows = self._store.list_items_by_reception_ids(
                reception_ids, deadline=self._deadline(deadline)
            )
        return [to_item(r) for r in rows]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def open_reception(self, point_id: str, *, deadline: Deadline | None = None) -> ServiceResult:
        """Open a new reception on *point_id*.

        Fails with ALREADY_OPEN if the point has one in progress.
        """
        op = "open_reception"
        try:
            reception = self._open(point_id, self._deadline(deadline))
        except ReceivingError as exc:
            return self._fail(op, exc)

        log.info("reception.opened", point_id=reception.point_id, reception_id=reception.id)
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(ReceptionData, reception.model_dump(mode="json")),
        )

    @traced
    def add_item(
        self,
        point_id: str,
        kind: str,
        *,
        deadline: Deadline | None = None,
    ) -> ServiceResult:
        """Append an item of *kind* to the open reception of *point_id*."""
        op = "add_item"
        try:
            item = self._add(point_id, kind, self._deadline(deadline))
        except ReceivingError as exc:
            return self._fail(op, exc)

        log.info("item.added", reception_id=item.reception_id, item_id=item.id, kind=item.kind)
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(ItemData, item.model_dump(mode="json")),
        )

    @traced
    def remove_last_item(
        self, point_id: str, *, deadline: Deadline | None = None
    ) -> ServiceResult:
        """Remove the most recently added item from the open reception of *point_id*."""
        op = "remove_last_item"
        try:
            item = self._remove_last(point_id, self._deadline(deadline))
        except ReceivingError as exc:
            return self._fail(op, exc)

        log.info("item.removed", reception_id=item.reception_id, item_id=item.id)
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(ItemData, item.model_dump(mode="json")),
        )

    @traced
    def close_reception(
        self, point_id: str, *, deadline: Deadline | None = None
    ) -> ServiceResult:
        """Close the open reception of *point_id*. Closed is terminal."""
        op = "close_reception"
        try:
            reception = self._close(point_id, self._deadline(deadline))
        except ReceivingError as exc:
            return self._fail(op, exc)

        log.info("reception.closed", point_id=reception.point_id, reception_id=reception.id)
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(ReceptionData, reception.model_dump(mode="json")),
        )

    @traced
    def get_reception(
        self, reception_id: str, *, deadline: Deadline | None = None
    ) -> ServiceResult:
        """Retrieve one reception, in any status, with its items."""
        op = "get_reception"
        dl = self._deadline(deadline)
        try:
            reception_id = require_uuid(reception_id, "reception_id")
            with self._storage(op, read=True, reception_id=reception_id):
                row = self._store.get_reception(reception_id, deadline=dl)
            if row is None:
                raise NotFoundFailure(
                    ErrorCode.NOT_FOUND,
                    f"No reception found with ID: {reception_id}",
                    reception_id=reception_id,
                )
            items = self.items_for_receptions([reception_id], deadline=dl)
        except ReceivingError as exc:
            return self._fail(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(
                ReceptionDetailData,
                {
                    "reception": to_reception(row).model_dump(mode="json"),
                    "items": [i.model_dump(mode="json") for i in items],
                },
            ),
        )
