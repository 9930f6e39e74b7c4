"""SQLAlchemy Core table definitions for the pvzctl database.

Three tables keyed by surrogate UUID text ids. Timestamps are stored as
fixed-width UTC text (see :mod:`pvzctl.infrastructure.database.timestamps`)
so lexical and chronological order agree on every backend.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

OPEN_STATUS = "in_progress"
CLOSED_STATUS = "closed"

metadata = MetaData()

points = Table(
    "points",
    metadata,
    Column("id", Text, primary_key=True),
    Column("city", Text, nullable=False),
    Column("registered_at", Text, nullable=False),
)

receptions = Table(
    "receptions",
    metadata,
    Column("id", Text, primary_key=True),
    Column("point_id", Text, ForeignKey("points.id"), nullable=False),
    Column("opened_at", Text, nullable=False),
    Column("status", Text, nullable=False, default=OPEN_STATUS, server_default=OPEN_STATUS),
)

items = Table(
    "items",
    metadata,
    Column("id", Text, primary_key=True),
    Column("reception_id", Text, ForeignKey("receptions.id"), nullable=False),
    Column("kind", Text, nullable=False),
    Column("added_at", Text, nullable=False),
    Column("seq", Integer, nullable=False),  # append order within a reception; LIFO key
    UniqueConstraint("reception_id", "seq"),
)

# ---------------------------------------------------------------------------
# Indexes
# ---------------------------------------------------------------------------

Index("ix_points_registered", points.c.registered_at.desc(), points.c.id.desc())
Index("ix_receptions_point", receptions.c.point_id, receptions.c.opened_at)

# At most one open reception per point, enforced by the store itself.
Index(
    "uq_receptions_one_open_per_point",
    receptions.c.point_id,
    unique=True,
    sqlite_where=receptions.c.status == OPEN_STATUS,
    postgresql_where=receptions.c.status == OPEN_STATUS,
)
