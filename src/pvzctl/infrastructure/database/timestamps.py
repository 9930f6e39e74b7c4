"""Timestamp encoding for the storage layer."""

from __future__ import annotations

from datetime import UTC, datetime

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_db(value: datetime) -> str:
    """Encode *value* as fixed-width UTC text. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def from_db(raw: str) -> datetime:
    """Decode text written by :func:`to_db` into an aware UTC datetime."""
    return datetime.strptime(raw, TIMESTAMP_FORMAT).replace(tzinfo=UTC)
