"""ReceivingStore: the storage port used by the receiving services.

One concrete adapter per backing store implements this ABC
(:class:`~pvzctl.infrastructure.repositories.store.SqlReceivingStore`);
tests substitute an in-memory fake implementing the same contract.

Every method accepts a keyword-only ``deadline``. Implementations raise
:class:`~pvzctl.infrastructure.errors.StorageError` on failure and never
return partial results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from pvzctl.infrastructure.deadline import Deadline


@dataclass(frozen=True)
class PointRow:
    id: str
    city: str
    registered_at: datetime


@dataclass(frozen=True)
class ReceptionRow:
    id: str
    point_id: str
    opened_at: datetime
    status: str


@dataclass(frozen=True)
class ItemRow:
    id: str
    reception_id: str
    kind: str
    added_at: datetime
    seq: int


class ReceivingStore(ABC):
    """Persistence contract for points, receptions, and items."""

    # -- points ---------------------------------------------------------

    @abstractmethod
    def create_point(self, city: str, *, deadline: Deadline | None = None) -> PointRow:
        """Persist a point with a store-assigned id and registration time."""

    @abstractmethod
    def get_point(self, point_id: str, *, deadline: Deadline | None = None) -> PointRow | None:
        """Fetch one point, or None."""

    @abstractmethod
    def list_points(
        self,
        limit: int,
        after_registered_at: datetime | None = None,
        after_id: str | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[PointRow]:
        """Return up to *limit* points ordered by ``(registered_at desc, id desc)``.

        Only rows strictly after the cursor are returned when one is given.
        Supplying exactly one cursor half raises an INVALID_INPUT error.
        """

    @abstractmethod
    def list_all_points(self, *, deadline: Deadline | None = None) -> list[PointRow]:
        """Return every point, newest first."""

    # -- receptions -----------------------------------------------------

    @abstractmethod
    def open_reception(self, point_id: str, *, deadline: Deadline | None = None) -> ReceptionRow:
        """Insert an in-progress reception.

        Raises a CONFLICT error when the point already has an open reception.
        """

    @abstractmethod
    def find_open_reception(
        self, point_id: str, *, deadline: Deadline | None = None
    ) -> ReceptionRow | None:
        """Return the open reception for *point_id*, or None."""

    @abstractmethod
    def get_reception(
        self, reception_id: str, *, deadline: Deadline | None = None
    ) -> ReceptionRow | None:
        """Fetch one reception regardless of status, or None."""

    @abstractmethod
    def close_reception_if_open(
        self, reception_id: str, *, deadline: Deadline | None = None
    ) -> int:
        """Set status to closed only while it is still open. Returns rows affected."""

    @abstractmethod
    def list_receptions_by_point_ids(
        self,
        point_ids: Sequence[str],
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[ReceptionRow]:
        """Batch-fetch receptions for *point_ids*, ``opened_at`` within inclusive bounds.

        Ordered by ``opened_at desc``.
        """

    # -- items ----------------------------------------------------------

    @abstractmethod
    def append_item(
        self, reception_id: str, kind: str, *, deadline: Deadline | None = None
    ) -> ItemRow | None:
        """Append an item with the next sequence number.

        Returns None, writing nothing, when the reception is no longer open.
        """

    @abstractmethod
    def find_newest_item(
        self, reception_id: str, *, deadline: Deadline | None = None
    ) -> ItemRow | None:
        """Return the item with maximum ``seq``, or None."""

    @abstractmethod
    def delete_item(self, item_id: str, *, deadline: Deadline | None = None) -> int:
        """Delete an item of a still-open reception. Returns rows affected."""

    @abstractmethod
    def list_items_by_reception_ids(
        self, reception_ids: Sequence[str], *, deadline: Deadline | None = None
    ) -> list[ItemRow]:
        """Batch-fetch items for *reception_ids*, ordered by ``seq`` within each reception."""
