"""Database engine setup.

SQLite is the default persistence layer (WAL mode, foreign keys on);
any SQLAlchemy URL works, and PostgreSQL is the production target.

SQLAlchemy Core (not ORM) is used: every storage call is a single short
transaction, so there is no benefit from session management or identity maps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url

from pvzctl.infrastructure.database.schema import metadata


def create_db_engine(url: str, *, echo: bool = False, **engine_kwargs: Any) -> Engine:
    """Create an engine; SQLite connections get WAL mode and foreign keys."""
    engine = create_engine(url, echo=echo, **engine_kwargs)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    return engine


def init_database(url: str, *, echo: bool = False) -> Engine:
    """Initialize the database at *url* and return an engine ready for use.

    Creates the parent directory of a file-backed SQLite database and all
    tables from :data:`schema.metadata`.

    Idempotent: safe to call on an existing database.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(url, echo=echo)
    metadata.create_all(engine)
    return engine
