"""Typed payload contracts for service and transport boundaries.

These models validate operation payload shapes before they leave the
service layer, so a renamed key (for example ``items`` vs ``products``)
fails fast in tests rather than in a consumer.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T", bound=BaseModel)


def dump_validated(model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a JSON-ready payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="json")


class PointData(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    city: str
    registered_at: str


class ReceptionData(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    point_id: str
    opened_at: str
    status: str


class ItemData(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    reception_id: str
    kind: str
    added_at: str
    seq: int


class ReceptionDetailData(BaseModel):
    """A reception with its items, oldest item first."""

    reception: ReceptionData
    items: list[ItemData]


class PointEntry(BaseModel):
    """One point on a listing page with its receptions, newest first."""

    point: PointData
    receptions: list[ReceptionDetailData]


class CursorData(BaseModel):
    registered_at: str
    id: str


class PointPageData(BaseModel):
    """``list_points`` payload."""

    items: list[PointEntry]
    count: int
    limit: int
    next_cursor: CursorData | None = None


class PointListData(BaseModel):
    """``list_all_points`` payload."""

    items: list[PointData]
    count: int
