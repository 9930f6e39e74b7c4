"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy store initialization, the role check,
and centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
import structlog

from pvzctl.domain.errors import ErrorCode, ForbiddenFailure
from pvzctl.output.formatters import OutputSettings, format_result
from pvzctl.services.result import ServiceResult

if TYPE_CHECKING:
    from pvzctl.config.models import Role
    from pvzctl.config.settings import PvzSettings
    from pvzctl.infrastructure.repositories.base import ReceivingStore

log = structlog.get_logger(__name__)


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The store is lazily initialized on first use so ``--help`` and
    ``--examples`` never touch the database.
    """

    def __init__(self, settings: PvzSettings, store: ReceivingStore | None = None) -> None:
        self.settings = settings
        self._store = store

        from pvzctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from pvzctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> ReceivingStore:
        """The storage adapter (created lazily on first access)."""
        if self._store is None:
            from pvzctl.infrastructure.database.engine import init_database
            from pvzctl.infrastructure.repositories.store import SqlReceivingStore

            engine = init_database(self.settings.db_url, echo=self.settings.database.echo)
            self._store = SqlReceivingStore(engine)
        return self._store

    def require_role(self, role: Role, op: str) -> None:
        """Exit with a FORBIDDEN error unless the caller holds *role*."""
        actual = self.settings.effective_role
        if actual == role:
            return
        log.warning("auth.forbidden", op=op, required=role, role=actual)
        self.emit(
            ServiceResult.failure(
                op,
                ForbiddenFailure(
                    ErrorCode.FORBIDDEN,
                    f"Operation {op} requires role '{role}', caller has '{actual}'",
                    required=role,
                    role=actual,
                ),
            )
        )

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
