"""Baseline schema: points, receptions, items.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-01

Databases created by ``pvzctl init`` are stamped at this revision without
running it; empty databases get it applied by ``alembic upgrade head``.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "points",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("city", sa.Text, nullable=False),
        sa.Column("registered_at", sa.Text, nullable=False),
    )
    op.create_index(
        "ix_points_registered",
        "points",
        [sa.text("registered_at DESC"), sa.text("id DESC")],
    )

    op.create_table(
        "receptions",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("point_id", sa.Text, sa.ForeignKey("points.id"), nullable=False),
        sa.Column("opened_at", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default="in_progress"),
    )
    op.create_index("ix_receptions_point", "receptions", ["point_id", "opened_at"])
    op.create_index(
        "uq_receptions_one_open_per_point",
        "receptions",
        ["point_id"],
        unique=True,
        sqlite_where=sa.text("status = 'in_progress'"),
        postgresql_where=sa.text("status = 'in_progress'"),
    )

    op.create_table(
        "items",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("reception_id", sa.Text, sa.ForeignKey("receptions.id"), nullable=False),
        sa.Column("kind", sa.Text, nullable=False),
        sa.Column("added_at", sa.Text, nullable=False),
        sa.Column("seq", sa.Integer, nullable=False),
        sa.UniqueConstraint("reception_id", "seq"),
    )


def downgrade() -> None:
    op.drop_table("items")
    op.drop_table("receptions")
    op.drop_table("points")
