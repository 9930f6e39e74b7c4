"""Command group: receptions and their items."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from pvzctl.commands._base import PvzGroup
from pvzctl.domain.types import ItemKind
from pvzctl.services.receptions import ReceptionLedger

if TYPE_CHECKING:
    from pvzctl.commands._context import AppContext

_RECEPTION_EXAMPLES = """\
  pvzctl reception open <point-id>
  pvzctl reception add <point-id> electronics
  pvzctl reception remove-last <point-id>
  pvzctl reception close <point-id>
  pvzctl reception get <reception-id>"""


@click.group(cls=PvzGroup, examples=_RECEPTION_EXAMPLES)
@click.pass_obj
def reception(app: AppContext) -> None:
    """Open, fill, and close receptions of goods."""


def _ledger(app: AppContext) -> ReceptionLedger:
    return ReceptionLedger(app.store, app.settings)


@reception.command("open", examples="  pvzctl reception open <point-id>")
@click.argument("point_id")
@click.pass_obj
def open_cmd(app: AppContext, point_id: str) -> None:
    """Open a new reception on POINT_ID."""
    app.emit(_ledger(app).open_reception(point_id))


@reception.command(
    examples="""\
  pvzctl reception add <point-id> electronics
  pvzctl -q reception add <point-id> shoes"""
)
@click.argument("point_id")
@click.argument("kind", type=click.Choice([k.value for k in ItemKind]))
@click.pass_obj
def add(app: AppContext, point_id: str, kind: str) -> None:
    """Add an item of KIND to the open reception of POINT_ID."""
    app.emit(_ledger(app).add_item(point_id, kind))


@reception.command("remove-last", examples="  pvzctl reception remove-last <point-id>")
@click.argument("point_id")
@click.pass_obj
def remove_last(app: AppContext, point_id: str) -> None:
    """Remove the most recently added item from the open reception."""
    app.emit(_ledger(app).remove_last_item(point_id))


@reception.command(examples="  pvzctl reception close <point-id>")
@click.argument("point_id")
@click.pass_obj
def close(app: AppContext, point_id: str) -> None:
    """Close the open reception of POINT_ID."""
    app.emit(_ledger(app).close_reception(point_id))


@reception.command(examples="  pvzctl --json reception get <reception-id>")
@click.argument("reception_id")
@click.pass_obj
def get(app: AppContext, reception_id: str) -> None:
    """Show a reception and its items."""
    app.emit(_ledger(app).get_reception(reception_id))
