"""Domain value types: cities, item kinds, and the three records.

Records are frozen pydantic models. They are built by the service layer
from storage rows and serialized into ``ServiceResult.data`` payloads.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pvzctl.domain.lifecycle import ReceptionStatus


class City(StrEnum):
    """Cities where pickup points may be registered."""

    MOSCOW = "Moscow"
    SAINT_PETERSBURG = "Saint Petersburg"
    KAZAN = "Kazan"


class ItemKind(StrEnum):
    """Kinds of goods accepted into a reception."""

    ELECTRONICS = "electronics"
    CLOTHES = "clothes"
    SHOES = "shoes"


ALLOWED_CITIES: frozenset[str] = frozenset(c.value for c in City)
ALLOWED_KINDS: frozenset[str] = frozenset(k.value for k in ItemKind)


def is_valid_city(city: str) -> bool:
    return city in ALLOWED_CITIES


def is_valid_kind(kind: str) -> bool:
    return kind in ALLOWED_KINDS


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def parse_timestamp(raw: str) -> datetime:
    """Parse any ISO 8601 timestamp into an aware UTC datetime.

    Raises:
        ValueError: If *raw* is not ISO 8601.
    """
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class Point(BaseModel):
    """A pickup point. Immutable after creation."""

    model_config = ConfigDict(frozen=True)

    id: str
    city: str
    registered_at: datetime


class Reception(BaseModel):
    """A goods-intake session tied to one point."""

    model_config = ConfigDict(frozen=True)

    id: str
    point_id: str
    opened_at: datetime
    status: ReceptionStatus


class Item(BaseModel):
    """A single good registered against a reception.

    ``seq`` is the append order within its reception and alone decides
    which item is newest; ``added_at`` is informational.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    reception_id: str
    kind: ItemKind
    added_at: datetime
    seq: int = Field(ge=1)


class PageCursor(BaseModel):
    """Keyset cursor: the sort key of the last row on the previous page."""

    model_config = ConfigDict(frozen=True)

    registered_at: datetime
    id: str

    @classmethod
    def from_parts(
        cls, registered_at: datetime | None, point_id: str | None
    ) -> PageCursor | None:
        """Build a cursor from its two optional halves.

        Returns None when both halves are absent.

        Raises:
            ValueError: If only one half is supplied.
        """
        if registered_at is None and point_id is None:
            return None
        if registered_at is None or point_id is None:
            msg = "cursor requires both registered_at and id, or neither"
            raise ValueError(msg)
        return cls(registered_at=registered_at, id=point_id)

    @classmethod
    def after(cls, point: Point) -> PageCursor:
        return cls(registered_at=point.registered_at, id=point.id)
