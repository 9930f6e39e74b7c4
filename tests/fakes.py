"""In-memory ReceivingStore used by service tests.

Mirrors the SQL adapter's conditional-write semantics (one open reception
per point, guarded append/delete/close) and records every call so tests
can count round trips. ``fail_on`` injects a StorageError for a method.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from pvzctl.infrastructure.deadline import Deadline
from pvzctl.infrastructure.errors import StorageError, StorageErrorKind
from pvzctl.infrastructure.repositories.base import (
    ItemRow,
    PointRow,
    ReceivingStore,
    ReceptionRow,
)

_EPOCH = datetime(2026, 1, 1, tzinfo=UTC)


class InMemoryReceivingStore(ReceivingStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tick = 0
        self.points: dict[str, PointRow] = {}
        self.receptions: dict[str, ReceptionRow] = {}
        self.items: dict[str, ItemRow] = {}
        self.calls: list[str] = []
        self.fail_on: dict[str, StorageErrorKind] = {}

    # -- helpers ----------------------------------------------------------

    def _now(self) -> datetime:
        self._tick += 1
        return _EPOCH + timedelta(microseconds=self._tick)

    def _enter(self, op: str, deadline: Deadline | None) -> None:
        self.calls.append(op)
        if deadline is not None:
            deadline.check(op)
        kind = self.fail_on.get(op)
        if kind is not None:
            raise StorageError(kind, op, "injected failure")

    def reset_calls(self) -> None:
        self.calls.clear()

    def set_status(self, reception_id: str, status: str) -> None:
        row = self.receptions[reception_id]
        self.receptions[reception_id] = ReceptionRow(
            id=row.id, point_id=row.point_id, opened_at=row.opened_at, status=status
        )

    # -- points -----------------------------------------------------------

    def create_point(self, city: str, *, deadline: Deadline | None = None) -> PointRow:
        with self._lock:
            self._enter("create_point", deadline)
            row = PointRow(id=str(uuid.uuid4()), city=city, registered_at=self._now())
            self.points[row.id] = row
            return row

    def add_point_at(self, registered_at: datetime, point_id: str | None = None) -> PointRow:
        """Insert a point with an explicit timestamp (for tie-break tests)."""
        row = PointRow(
            id=point_id or str(uuid.uuid4()), city="Moscow", registered_at=registered_at
        )
        self.points[row.id] = row
        return row

    def get_point(self, point_id: str, *, deadline: Deadline | None = None) -> PointRow | None:
        with self._lock:
            self._enter("get_point", deadline)
            return self.points.get(point_id)

    def list_points(
        self,
        limit: int,
        after_registered_at: datetime | None = None,
        after_id: str | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[PointRow]:
        with self._lock:
            self._enter("list_points", deadline)
            if (after_registered_at is None) != (after_id is None):
                raise StorageError(StorageErrorKind.INVALID_INPUT, "list_points", "half cursor")
            rows = sorted(
                self.points.values(), key=lambda p: (p.registered_at, p.id), reverse=True
            )
            if after_registered_at is not None:
                rows = [p for p in rows if (p.registered_at, p.id) < (after_registered_at, after_id)]
            return rows[:limit]

    def list_all_points(self, *, deadline: Deadline | None = None) -> list[PointRow]:
        with self._lock:
            self._enter("list_all_points", deadline)
            return sorted(
                self.points.values(), key=lambda p: (p.registered_at, p.id), reverse=True
            )

    # -- receptions -------------------------------------------------------

    def open_reception(self, point_id: str, *, deadline: Deadline | None = None) -> ReceptionRow:
        with self._lock:
            self._enter("open_reception", deadline)
            if point_id not in self.points:
                raise StorageError(StorageErrorKind.CONFLICT, "open_reception", "foreign key")
            if any(
                r.point_id == point_id and r.status == "in_progress"
                for r in self.receptions.values()
            ):
                raise StorageError(StorageErrorKind.CONFLICT, "open_reception", "already open")
            row = ReceptionRow(
                id=str(uuid.uuid4()), point_id=point_id, opened_at=self._now(), status="in_progress"
            )
            self.receptions[row.id] = row
            return row

    def find_open_reception(
        self, point_id: str, *, deadline: Deadline | None = None
    ) -> ReceptionRow | None:
        with self._lock:
            self._enter("find_open_reception", deadline)
            for row in self.receptions.values():
                if row.point_id == point_id and row.status == "in_progress":
                    return row
            return None

    def get_reception(
        self, reception_id: str, *, deadline: Deadline | None = None
    ) -> ReceptionRow | None:
        with self._lock:
            self._enter("get_reception", deadline)
            return self.receptions.get(reception_id)

    def close_reception_if_open(
        self, reception_id: str, *, deadline: Deadline | None = None
    ) -> int:
        with self._lock:
            self._enter("close_reception_if_open", deadline)
            row = self.receptions.get(reception_id)
            if row is None or row.status != "in_progress":
                return 0
            self.set_status(reception_id, "closed")
            return 1

    def list_receptions_by_point_ids(
        self,
        point_ids: Sequence[str],
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[ReceptionRow]:
        with self._lock:
            self._enter("list_receptions_by_point_ids", deadline)
            wanted = set(point_ids)
            rows = [
                r
                for r in self.receptions.values()
                if r.point_id in wanted
                and (start is None or r.opened_at >= start)
                and (end is None or r.opened_at <= end)
            ]
            return sorted(rows, key=lambda r: (r.opened_at, r.id), reverse=True)

    # -- items ------------------------------------------------------------

    def append_item(
        self, reception_id: str, kind: str, *, deadline: Deadline | None = None
    ) -> ItemRow | None:
        with self._lock:
            self._enter("append_item", deadline)
            reception = self.receptions.get(reception_id)
            if reception is None or reception.status != "in_progress":
                return None
            seq = 1 + max(
                (i.seq for i in self.items.values() if i.reception_id == reception_id), default=0
            )
            row = ItemRow(
                id=str(uuid.uuid4()),
                reception_id=reception_id,
                kind=kind,
                added_at=self._now(),
                seq=seq,
            )
            self.items[row.id] = row
            return row

    def find_newest_item(
        self, reception_id: str, *, deadline: Deadline | None = None
    ) -> ItemRow | None:
        with self._lock:
            self._enter("find_newest_item", deadline)
            rows = [i for i in self.items.values() if i.reception_id == reception_id]
            return max(rows, key=lambda i: i.seq, default=None)

    def delete_item(self, item_id: str, *, deadline: Deadline | None = None) -> int:
        with self._lock:
            self._enter("delete_item", deadline)
            row = self.items.get(item_id)
            if row is None or self.receptions[row.reception_id].status != "in_progress":
                return 0
            del self.items[item_id]
            return 1

    def list_items_by_reception_ids(
        self, reception_ids: Sequence[str], *, deadline: Deadline | None = None
    ) -> list[ItemRow]:
        with self._lock:
            self._enter("list_items_by_reception_ids", deadline)
            wanted = set(reception_ids)
            rows = [i for i in self.items.values() if i.reception_id in wanted]
            return sorted(rows, key=lambda i: (i.reception_id, i.seq))

    def snapshot(self) -> dict[str, Any]:
        return {
            "points": len(self.points),
            "receptions": len(self.receptions),
            "items": len(self.items),
        }
