"""Alembic environment for pvzctl.

Online runs go through :func:`create_db_engine`, so migrations see the same
SQLite pragmas (foreign keys, WAL) as the CLI. SQLite cannot ALTER most
constraints in place, hence batch mode.
"""

from __future__ import annotations

from typing import Any

from alembic import context
from sqlalchemy import pool

from pvzctl.infrastructure.database.engine import create_db_engine
from pvzctl.infrastructure.database.schema import metadata


def _configure(**kwargs: Any) -> None:
    context.configure(
        target_metadata=metadata,
        render_as_batch=True,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline(url: str) -> None:
    """Emit the migration SQL to stdout instead of executing it."""
    _configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online(url: str) -> None:
    engine = create_db_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _configure(connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


_url = context.config.get_main_option("sqlalchemy.url")
if not _url:
    raise RuntimeError("sqlalchemy.url must be set on the Alembic config")

if context.is_offline_mode():
    run_migrations_offline(_url)
else:
    run_migrations_online(_url)
