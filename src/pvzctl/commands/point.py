"""Command group: pickup points (create, list, all, get)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import click

from pvzctl.commands._base import PvzGroup
from pvzctl.domain.types import parse_timestamp
from pvzctl.services.listing import ListAggregator
from pvzctl.services.points import PointRegistry

if TYPE_CHECKING:
    from pvzctl.commands._context import AppContext


def _timestamp(_ctx: click.Context, param: click.Parameter, value: str | None) -> datetime | None:
    """Click callback: parse an ISO 8601 option value into an aware datetime."""
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise click.BadParameter(f"{value!r} is not an ISO 8601 timestamp") from exc


_POINT_EXAMPLES = """\
  pvzctl --role moderator point create Moscow
  pvzctl point list --limit 5
  pvzctl point list --start-date 2026-01-01T00:00:00Z --end-date 2026-01-31T23:59:59Z
  pvzctl point all
  pvzctl --json point get 6f1c2b1e-2f4e-4c55-9a53-3c1f4c0d2a10"""


@click.group(cls=PvzGroup, examples=_POINT_EXAMPLES)
@click.pass_obj
def point(app: AppContext) -> None:
    """Register and list pickup points."""


@point.command(
    examples="""\
  pvzctl --role moderator point create Moscow
  pvzctl --role moderator point create "Saint Petersburg\""""
)
@click.argument("city")
@click.pass_obj
def create(app: AppContext, city: str) -> None:
    """Register a pickup point in CITY (moderators only)."""
    app.require_role("moderator", "create_point")
    app.emit(PointRegistry(app.store, app.settings).create(city))


@point.command(
    "list",
    examples="""\
  pvzctl point list
  pvzctl point list --limit 30
  pvzctl point list --start-date 2026-03-01T00:00:00Z
  pvzctl point list --after-date 2026-03-02T10:15:00.000001Z --after-id <point-id>
  pvzctl point list --bare --limit 30""",
)
@click.option("--start-date", callback=_timestamp, help="Only receptions opened at or after this.")
@click.option("--end-date", callback=_timestamp, help="Only receptions opened at or before this.")
@click.option("--limit", type=int, default=None, help="Page size (default from config).")
@click.option(
    "--after-date",
    callback=_timestamp,
    help="Cursor: registered_at of the last point already seen.",
)
@click.option("--after-id", default=None, help="Cursor: id of the last point already seen.")
@click.option("--bare", is_flag=True, help="Points only, without receptions and items.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    start_date: datetime | None,
    end_date: datetime | None,
    limit: int | None,
    after_date: datetime | None,
    after_id: str | None,
    bare: bool,
) -> None:
    """List points with their receptions and items, newest first."""
    if bare:
        if start_date is not None or end_date is not None:
            raise click.UsageError("--start-date and --end-date filter receptions; drop --bare.")
        app.emit(
            PointRegistry(app.store, app.settings).list_page(
                after_registered_at=after_date, after_id=after_id, limit=limit
            )
        )
        return

    result = ListAggregator(app.store, app.settings).page(
        start_date=start_date,
        end_date=end_date,
        after_registered_at=after_date,
        after_id=after_id,
        limit=limit,
    )
    app.emit(result)


@point.command("all", examples="  pvzctl point all\n  pvzctl -q point all")
@click.pass_obj
def all_cmd(app: AppContext) -> None:
    """List every point without pagination."""
    app.emit(PointRegistry(app.store, app.settings).list_all())


@point.command(examples="  pvzctl point get <point-id>")
@click.argument("point_id")
@click.pass_obj
def get(app: AppContext, point_id: str) -> None:
    """Show one point."""
    app.emit(PointRegistry(app.store, app.settings).get_point(point_id))
