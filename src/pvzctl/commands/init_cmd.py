"""Command: database initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from sqlalchemy.exc import SQLAlchemyError

from pvzctl.commands._base import PvzCommand
from pvzctl.domain.errors import ErrorCode, StorageFailure
from pvzctl.services.result import ServiceResult

if TYPE_CHECKING:
    from pvzctl.commands._context import AppContext

_INIT_EXAMPLES = """\
  pvzctl init
  pvzctl --db sqlite:////var/lib/pvz/pvz.db init
  PVZCTL_DATABASE__URL=postgresql+psycopg://pvz@db/pvz pvzctl init"""


@click.command("init", cls=PvzCommand, examples=_INIT_EXAMPLES)
@click.pass_obj
def init_cmd(app: AppContext) -> None:
    """Create the tables and stamp the migration head."""
    from pvzctl.infrastructure.database.engine import init_database
    from pvzctl.infrastructure.database.migrations import current_revision, stamp_head

    op = "init"
    url = app.settings.db_url
    try:
        engine = init_database(url, echo=app.settings.database.echo)
        engine.dispose()
        stamp_head(url)
        revision = current_revision(url)
    except SQLAlchemyError as exc:
        app.emit(
            ServiceResult.failure(
                op,
                StorageFailure(ErrorCode.STORAGE_ERROR, f"Could not initialize database: {exc}"),
            )
        )
        return

    app.emit(
        ServiceResult(
            ok=True,
            op=op,
            data={"db_url": engine.url.render_as_string(hide_password=True), "revision": revision},
        )
    )
