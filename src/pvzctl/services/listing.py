"""ListAggregator: one enriched page of points, receptions, and items.

Pipeline: POINTS -> RECEPTIONS -> ITEMS -> ASSEMBLE

Each stage is a single batched storage call keyed by the ids the previous
stage returned, so a page costs at most three round trips regardless of
how many points, receptions, or items it holds. An empty stage ends the
pipeline early. Any failure aborts the whole page; partial trees are
never returned.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog

from pvzctl.domain.errors import ErrorCode, ReceivingError, ValidationFailure
from pvzctl.domain.types import Item, Reception
from pvzctl.infrastructure.deadline import Deadline
from pvzctl.services.base import BaseService
from pvzctl.services.contracts import PointPageData, dump_validated
from pvzctl.services.points import PointPage, PointRegistry
from pvzctl.services.receptions import ReceptionLedger
from pvzctl.services.result import ServiceResult
from pvzctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from pvzctl.config.settings import PvzSettings
    from pvzctl.infrastructure.repositories.base import ReceivingStore

log = structlog.get_logger(__name__)


class ListAggregator(BaseService):
    """Composes listing pages from PointRegistry and ReceptionLedger."""

    def __init__(
        self,
        store: ReceivingStore,
        settings: PvzSettings,
        *,
        registry: PointRegistry | None = None,
        ledger: ReceptionLedger | None = None,
    ) -> None:
        super().__init__(store, settings)
        self._registry = registry or PointRegistry(store, settings)
        self._ledger = ledger or ReceptionLedger(store, settings)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_range(start: datetime | None, end: datetime | None) -> None:
        if start is not None and end is not None and start > end:
            raise ValidationFailure(
                ErrorCode.INVALID_DATE_RANGE,
                "start_date must not be after end_date",
                start_date=start.isoformat(),
                end_date=end.isoformat(),
            )

    @staticmethod
    def _assemble(
        page: PointPage,
        receptions: list[Reception],
        items: list[Item],
    ) -> dict[str, Any]:
        """Group receptions under points and items under receptions."""
        by_point: dict[str, list[Reception]] = defaultdict(list)
        for reception in receptions:
            by_point[reception.point_id].append(reception)

        by_reception: dict[str, list[Item]] = defaultdict(list)
        for item in items:
            by_reception[item.reception_id].append(item)

        entries = [
            {
                "point": point.model_dump(mode="json"),
                "receptions": [
                    {
                        "reception": r.model_dump(mode="json"),
                        "items": [i.model_dump(mode="json") for i in by_reception[r.id]],
                    }
                    for r in by_point[point.id]
                ],
            }
            for point in page.points
        ]
        return {
            "items": entries,
            "count": len(entries),
            "limit": page.limit,
            "next_cursor": page.next_cursor.model_dump(mode="json") if page.next_cursor else None,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def page(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        after_registered_at: datetime | None = None,
        after_id: str | None = None,
        limit: int | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> ServiceResult:
        """Fetch one page of points with receptions opened in ``[start_date, end_date]``.

        Both date bounds are inclusive and optional. The cursor halves must
        be given together or not at all.
        """
        op = "list_points"
        dl = self._deadline(deadline)
        receptions: list[Reception] = []
        items: list[Item] = []

        try:
            self._check_range(start_date, end_date)

            with trace_span("fetch_points") as span:
                page = self._registry.fetch_page(after_registered_at, after_id, limit, deadline=dl)
                if span:
                    span.annotate("rows", len(page.points))

            round_trips = 1

            if page.points:
                round_trips += 1
                with trace_span("fetch_receptions", points=len(page.points)) as span:
                    receptions = self._ledger.receptions_for_points(
                        [p.id for p in page.points], start_date, end_date, deadline=dl
                    )
                    if span:
                        span.annotate("rows", len(receptions))

            if receptions:
                round_trips += 1
                with trace_span("fetch_items", receptions=len(receptions)) as span:
                    items = self._ledger.items_for_receptions(
                        [r.id for r in receptions], deadline=dl
                    )
                    if span:
                        span.annotate("rows", len(items))
        except ReceivingError as exc:
            return self._fail(op, exc)

        with trace_span("assemble"):
            data = dump_validated(PointPageData, self._assemble(page, receptions, items))

        log.debug(
            "points.listed",
            points=len(page.points),
            receptions=len(receptions),
            items=len(items),
            round_trips=round_trips,
            has_next=page.next_cursor is not None,
        )
        return ServiceResult(ok=True, op=op, data=data, meta={"round_trips": round_trips})
