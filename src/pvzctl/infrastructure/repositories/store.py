"""SqlReceivingStore: SQLAlchemy Core adapter for the storage port.

Each public method is one short transaction (``engine.begin()``). Driver
exceptions are classified by class into :class:`StorageErrorKind`:

- ``IntegrityError`` -> CONFLICT
- ``OperationalError`` -> TIMEOUT if the deadline fired, else UNAVAILABLE
- any other ``SQLAlchemyError`` -> QUERY

Deadlines are enforced before the transaction starts, while statements
run (SQLite: ``Connection.interrupt()`` on a timer; PostgreSQL:
``SET LOCAL statement_timeout``), and once more before commit so an
expired call never commits.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Text,
    and_,
    delete,
    exists,
    func,
    insert,
    literal,
    or_,
    select,
    text,
    update,
)
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from pvzctl.infrastructure.database.schema import (
    CLOSED_STATUS,
    OPEN_STATUS,
    items,
    points,
    receptions,
)
from pvzctl.infrastructure.database.timestamps import from_db, to_db, utc_now
from pvzctl.infrastructure.errors import StorageError, StorageErrorKind
from pvzctl.infrastructure.repositories.base import (
    ItemRow,
    PointRow,
    ReceivingStore,
    ReceptionRow,
)

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from pvzctl.infrastructure.deadline import Deadline

logger = logging.getLogger(__name__)

# Attempts for an item append that hits UNIQUE(reception_id, seq).
_APPEND_ATTEMPTS = 3


def _new_id() -> str:
    return str(uuid.uuid4())


def _point(row: Any) -> PointRow:
    return PointRow(id=row.id, city=row.city, registered_at=from_db(row.registered_at))


def _reception(row: Any) -> ReceptionRow:
    return ReceptionRow(
        id=row.id,
        point_id=row.point_id,
        opened_at=from_db(row.opened_at),
        status=row.status,
    )


def _item(row: Any) -> ItemRow:
    return ItemRow(
        id=row.id,
        reception_id=row.reception_id,
        kind=row.kind,
        added_at=from_db(row.added_at),
        seq=int(row.seq),
    )


class SqlReceivingStore(ReceivingStore):
    """Relational implementation of :class:`ReceivingStore`."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Transaction + classification
    # ------------------------------------------------------------------

    @contextmanager
    def _begin(self, operation: str, deadline: Deadline | None) -> Iterator[Connection]:
        """One transaction, with deadline enforcement and error classification."""
        if deadline is not None:
            deadline.check(operation)

        fired = threading.Event()
        try:
            with self._engine.begin() as conn:
                timer = self._arm_deadline(conn, deadline, fired)
                try:
                    yield conn
                    if deadline is not None:
                        deadline.check(operation)
                finally:
                    if timer is not None:
                        timer.cancel()
        except StorageError as exc:
            logger.warning("Storage %s failed: %s", operation, exc.kind)
            raise
        except IntegrityError as exc:
            logger.warning("Storage %s rejected by constraint", operation)
            raise StorageError(StorageErrorKind.CONFLICT, operation, str(exc.orig)) from exc
        except OperationalError as exc:
            if fired.is_set() or (deadline is not None and deadline.expired):
                logger.warning("Storage %s interrupted by deadline", operation)
                raise StorageError(
                    StorageErrorKind.TIMEOUT, operation, "deadline exceeded"
                ) from exc
            logger.error("Storage %s unavailable", operation, exc_info=True)
            raise StorageError(StorageErrorKind.UNAVAILABLE, operation, str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            logger.error("Storage %s query failed", operation, exc_info=True)
            raise StorageError(StorageErrorKind.QUERY, operation, str(exc)) from exc

    @staticmethod
    def _arm_deadline(
        conn: Connection,
        deadline: Deadline | None,
        fired: threading.Event,
    ) -> threading.Timer | None:
        """Make in-flight statements abort when *deadline* passes."""
        if deadline is None:
            return None

        dialect = conn.dialect.name
        if dialect == "postgresql":
            ms = max(1, int(deadline.remaining() * 1000))
            conn.execute(text(f"SET LOCAL statement_timeout = {ms}"))
            return None
        if dialect == "sqlite":
            raw = conn.connection.dbapi_connection

            def _interrupt() -> None:
                fired.set()
                raw.interrupt()  # type: ignore[union-attr]

            timer = threading.Timer(deadline.remaining(), _interrupt)
            timer.daemon = True
            timer.start()
            return timer
        return None

    # ------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------

    def create_point(self, city: str, *, deadline: Deadline | None = None) -> PointRow:
        row = PointRow(id=_new_id(), city=city, registered_at=utc_now())
        with self._begin("create_point", deadline) as conn:
            conn.execute(
                insert(points).values(
                    id=row.id,
                    city=row.city,
                    registered_at=to_db(row.registered_at),
                )
            )
        return row

    def get_point(self, point_id: str, *, deadline: Deadline | None = None) -> PointRow | None:
        with self._begin("get_point", deadline) as conn:
            row = conn.execute(select(points).where(points.c.id == point_id)).first()
        return _point(row) if row is not None else None

    def list_points(
        self,
        limit: int,
        after_registered_at: datetime | None = None,
        after_id: str | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[PointRow]:
        if (after_registered_at is None) != (after_id is None):
            raise StorageError(
                StorageErrorKind.INVALID_INPUT,
                "list_points",
                "cursor requires both registered_at and id, or neither",
            )

        stmt = (
            select(points)
            .order_by(points.c.registered_at.desc(), points.c.id.desc())
            .limit(limit)
        )
        if after_registered_at is not None:
            ts = to_db(after_registered_at)
            stmt = stmt.where(
                or_(
                    points.c.registered_at < ts,
                    and_(points.c.registered_at == ts, points.c.id < after_id),
                )
            )

        with self._begin("list_points", deadline) as conn:
            rows = conn.execute(stmt).fetchall()
        logger.debug("list_points returned %d rows (limit=%d)", len(rows), limit)
        return [_point(r) for r in rows]

    def list_all_points(self, *, deadline: Deadline | None = None) -> list[PointRow]:
        stmt = select(points).order_by(points.c.registered_at.desc(), points.c.id.desc())
        with self._begin("list_all_points", deadline) as conn:
            rows = conn.execute(stmt).fetchall()
        return [_point(r) for r in rows]

    # ------------------------------------------------------------------
    # Receptions
    # ------------------------------------------------------------------

    def open_reception(self, point_id: str, *, deadline: Deadline | None = None) -> ReceptionRow:
        opened_at = to_db(utc_now())
        reception_id = _new_id()
        with self._begin("open_reception", deadline) as conn:
            conn.execute(
                insert(receptions).values(
                    id=reception_id,
                    point_id=point_id,
                    opened_at=opened_at,
                    status=OPEN_STATUS,
                )
            )
        return ReceptionRow(
            id=reception_id,
            point_id=point_id,
            opened_at=from_db(opened_at),
            status=OPEN_STATUS,
        )

    def find_open_reception(
        self, point_id: str, *, deadline: Deadline | None = None
    ) -> ReceptionRow | None:
        stmt = (
            select(receptions)
            .where(receptions.c.point_id == point_id, receptions.c.status == OPEN_STATUS)
            .order_by(receptions.c.opened_at.desc())
            .limit(1)
        )
        with self._begin("find_open_reception", deadline) as conn:
            row = conn.execute(stmt).first()
        return _reception(row) if row is not None else None

    def get_reception(
        self, reception_id: str, *, deadline: Deadline | None = None
    ) -> ReceptionRow | None:
        with self._begin("get_reception", deadline) as conn:
            row = conn.execute(select(receptions).where(receptions.c.id == reception_id)).first()
        return _reception(row) if row is not None else None

    def close_reception_if_open(
        self, reception_id: str, *, deadline: Deadline | None = None
    ) -> int:
        stmt = (
            update(receptions)
            .where(receptions.c.id == reception_id, receptions.c.status == OPEN_STATUS)
            .values(status=CLOSED_STATUS)
        )
        with self._begin("close_reception_if_open", deadline) as conn:
            result = conn.execute(stmt)
        return int(result.rowcount)

    def list_receptions_by_point_ids(
        self,
        point_ids: Sequence[str],
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[ReceptionRow]:
        if not point_ids:
            return []

        stmt = select(receptions).where(receptions.c.point_id.in_(list(point_ids)))
        if start is not None:
            stmt = stmt.where(receptions.c.opened_at >= to_db(start))
        if end is not None:
            stmt = stmt.where(receptions.c.opened_at <= to_db(end))
        stmt = stmt.order_by(receptions.c.opened_at.desc(), receptions.c.id.desc())

        with self._begin("list_receptions_by_point_ids", deadline) as conn:
            rows = conn.execute(stmt).fetchall()
        return [_reception(r) for r in rows]

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def append_item(
        self, reception_id: str, kind: str, *, deadline: Deadline | None = None
    ) -> ItemRow | None:
        attempt = 1
        while True:
            try:
                return self._append_item_once(reception_id, kind, deadline)
            except StorageError as exc:
                if exc.kind is not StorageErrorKind.CONFLICT or attempt >= _APPEND_ATTEMPTS:
                    raise
                logger.debug(
                    "append_item lost the seq race on %s (attempt %d)", reception_id, attempt
                )
                attempt += 1

    def _append_item_once(
        self, reception_id: str, kind: str, deadline: Deadline | None
    ) -> ItemRow | None:
        item_id = _new_id()
        added_at = to_db(utc_now())
        still_open = exists().where(
            receptions.c.id == reception_id,
            receptions.c.status == OPEN_STATUS,
        )
        # seq is allocated inside the INSERT statement, never read beforehand.
        next_seq = (
            select(func.coalesce(func.max(items.c.seq), 0) + 1)
            .where(items.c.reception_id == reception_id)
            .scalar_subquery()
        )
        source = select(
            literal(item_id, Text),
            literal(reception_id, Text),
            literal(kind, Text),
            literal(added_at, Text),
            next_seq,
        ).where(still_open)

        with self._begin("append_item", deadline) as conn:
            # Row lock on PostgreSQL; SQLite holds the write lock for the INSERT.
            locked = conn.execute(
                select(receptions.c.id)
                .where(receptions.c.id == reception_id, receptions.c.status == OPEN_STATUS)
                .with_for_update()
            ).first()
            if locked is None:
                return None
            result = conn.execute(
                insert(items).from_select(
                    ["id", "reception_id", "kind", "added_at", "seq"], source
                )
            )
            if int(result.rowcount) == 0:
                return None
            seq = int(conn.execute(select(items.c.seq).where(items.c.id == item_id)).scalar_one())

        return ItemRow(
            id=item_id,
            reception_id=reception_id,
            kind=kind,
            added_at=from_db(added_at),
            seq=seq,
        )

    def find_newest_item(
        self, reception_id: str, *, deadline: Deadline | None = None
    ) -> ItemRow | None:
        stmt = (
            select(items)
            .where(items.c.reception_id == reception_id)
            .order_by(items.c.seq.desc())
            .limit(1)
        )
        with self._begin("find_newest_item", deadline) as conn:
            row = conn.execute(stmt).first()
        return _item(row) if row is not None else None

    def delete_item(self, item_id: str, *, deadline: Deadline | None = None) -> int:
        open_receptions = select(receptions.c.id).where(receptions.c.status == OPEN_STATUS)
        stmt = delete(items).where(
            items.c.id == item_id,
            items.c.reception_id.in_(open_receptions),
        )
        with self._begin("delete_item", deadline) as conn:
            result = conn.execute(stmt)
        return int(result.rowcount)

    def list_items_by_reception_ids(
        self, reception_ids: Sequence[str], *, deadline: Deadline | None = None
    ) -> list[ItemRow]:
        if not reception_ids:
            return []

        stmt = (
            select(items)
            .where(items.c.reception_id.in_(list(reception_ids)))
            .order_by(items.c.reception_id, items.c.seq)
        )
        with self._begin("list_items_by_reception_ids", deadline) as conn:
            rows = conn.execute(stmt).fetchall()
        return [_item(r) for r in rows]
