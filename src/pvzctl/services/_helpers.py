"""Shared service-layer helper functions: id checks and row conversion."""

from __future__ import annotations

import uuid

from pvzctl.domain.errors import ErrorCode, ValidationFailure
from pvzctl.domain.lifecycle import ReceptionStatus
from pvzctl.domain.types import Item, ItemKind, Point, Reception
from pvzctl.infrastructure.repositories.base import ItemRow, PointRow, ReceptionRow


def require_uuid(value: str, field: str) -> str:
    """Return *value* in canonical UUID form.

    Raises:
        ValidationFailure: INVALID_ID if *value* is not a UUID.
    """
    try:
        return str(uuid.UUID(value))
    except (ValueError, AttributeError, TypeError) as exc:
        raise ValidationFailure(
            ErrorCode.INVALID_ID,
            f"{field} must be a UUID, got {value!r}",
            field=field,
            value=value,
        ) from exc


def to_point(row: PointRow) -> Point:
    return Point(id=row.id, city=row.city, registered_at=row.registered_at)


def to_reception(row: ReceptionRow) -> Reception:
    return Reception(
        id=row.id,
        point_id=row.point_id,
        opened_at=row.opened_at,
        status=ReceptionStatus(row.status),
    )


def to_item(row: ItemRow) -> Item:
    return Item(
        id=row.id,
        reception_id=row.reception_id,
        kind=ItemKind(row.kind),
        added_at=row.added_at,
        seq=row.seq,
    )
