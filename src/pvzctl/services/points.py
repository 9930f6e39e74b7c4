"""PointRegistry: pickup point creation and keyset-paginated listing.

Points are immutable once created. Listing orders by
``(registered_at desc, id desc)`` and pages by keyset: the cursor is the
sort key of the last row already seen, so concurrent inserts can never
shift rows between pages the way offset pagination does.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog

from pvzctl.domain.errors import (
    ErrorCode,
    NotFoundFailure,
    ReceivingError,
    ValidationFailure,
)
from pvzctl.domain.types import ALLOWED_CITIES, PageCursor, Point, is_valid_city
from pvzctl.infrastructure.deadline import Deadline
from pvzctl.services._helpers import require_uuid, to_point
from pvzctl.services.base import BaseService
from pvzctl.services.contracts import PointData, PointListData, dump_validated
from pvzctl.services.result import ServiceResult
from pvzctl.services.telemetry import traced

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PointPage:
    """One page of points plus the cursor for the next one, if any."""

    points: list[Point]
    limit: int
    next_cursor: PageCursor | None


class PointRegistry(BaseService):
    """Validates, creates, and lists pickup points."""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def resolve_limit(self, limit: int | None) -> int:
        """Apply the configured default and bounds to a requested page size."""
        cfg = self._settings.pagination
        if limit is None:
            return cfg.default_limit
        if not 1 <= limit <= cfg.max_limit:
            raise ValidationFailure(
                ErrorCode.INVALID_LIMIT,
                f"limit must be between 1 and {cfg.max_limit}, got {limit}",
                limit=limit,
                max_limit=cfg.max_limit,
            )
        return limit

    @staticmethod
    def _cursor(after_registered_at: datetime | None, after_id: str | None) -> PageCursor | None:
        try:
            cursor = PageCursor.from_parts(after_registered_at, after_id)
        except ValueError as exc:
            raise ValidationFailure(
                ErrorCode.INVALID_CURSOR,
                "cursor requires both after_registered_at and after_id, or neither",
                has_registered_at=after_registered_at is not None,
                has_id=after_id is not None,
            ) from exc
        if cursor is not None:
            require_uuid(cursor.id, "after_id")
        return cursor

    def fetch_page(
        self,
        after_registered_at: datetime | None = None,
        after_id: str | None = None,
        limit: int | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> PointPage:
        """Fetch one keyset page of points.

        A next cursor is emitted only when the page is full: a full page
        may have more rows behind it, a short page is the end.

        Raises:
            ValidationFailure: INVALID_CURSOR or INVALID_LIMIT.
            StorageFailure: The storage call failed.
        """
        op = "list_points"
        cursor = self._cursor(after_registered_at, after_id)
        size = self.resolve_limit(limit)

        with self._storage(op, read=True, limit=size):
            rows = self._store.list_points(
                size,
                cursor.registered_at if cursor else None,
                cursor.id if cursor else None,
                deadline=self._deadline(deadline),
            )

        points = [to_point(r) for r in rows]
        next_cursor = PageCursor.after(points[-1]) if len(points) == size else None
        log.debug(
            "points.page",
            count=len(points),
            limit=size,
            has_next=next_cursor is not None,
        )
        return PointPage(points=points, limit=size, next_cursor=next_cursor)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def create(self, city: str, *, deadline: Deadline | None = None) -> ServiceResult:
        """Register a pickup point in one of the allowed cities.

        Callers must have checked the moderator role before invoking this.
        """
        op = "create_point"
        if not is_valid_city(city):
            log.warning("point.invalid_city", city=city)
            return self._fail(
                op,
                ValidationFailure(
                    ErrorCode.INVALID_CITY,
                    f"Points can only be created in: {', '.join(sorted(ALLOWED_CITIES))}",
                    city=city,
                ),
            )

        try:
            with self._storage(op, read=False, city=city):
                row = self._store.create_point(city, deadline=self._deadline(deadline))
        except ReceivingError as exc:
            return self._fail(op, exc)

        point = to_point(row)
        log.info("point.created", point_id=point.id, city=point.city)
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(PointData, point.model_dump(mode="json")),
        )

    @traced
    def get_point(self, point_id: str, *, deadline: Deadline | None = None) -> ServiceResult:
        """Retrieve a single point by id."""
        op = "get_point"
        try:
            point_id = require_uuid(point_id, "point_id")
            with self._storage(op, read=True, point_id=point_id):
                row = self._store.get_point(point_id, deadline=self._deadline(deadline))
            if row is None:
                raise NotFoundFailure(
                    ErrorCode.POINT_NOT_FOUND,
                    f"No point found with ID: {point_id}",
                    point_id=point_id,
                )
        except ReceivingError as exc:
            return self._fail(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(PointData, to_point(row).model_dump(mode="json")),
        )

    @traced
    def list_page(
        self,
        after_registered_at: datetime | None = None,
        after_id: str | None = None,
        limit: int | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> ServiceResult:
        """List one page of bare points (no receptions)."""
        op = "list_point_page"
        try:
            page = self.fetch_page(after_registered_at, after_id, limit, deadline=deadline)
        except ReceivingError as exc:
            return self._fail(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "items": [p.model_dump(mode="json") for p in page.points],
                "count": len(page.points),
                "limit": page.limit,
                "next_cursor": (
                    page.next_cursor.model_dump(mode="json") if page.next_cursor else None
                ),
            },
        )

    @traced
    def list_all(self, *, deadline: Deadline | None = None) -> ServiceResult:
        """List every point, newest first, without pagination."""
        op = "list_all_points"
        try:
            with self._storage(op, read=True):
                rows = self._store.list_all_points(deadline=self._deadline(deadline))
        except ReceivingError as exc:
            return self._fail(op, exc)

        points = [to_point(r).model_dump(mode="json") for r in rows]
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(PointListData, {"items": points, "count": len(points)}),
        )
