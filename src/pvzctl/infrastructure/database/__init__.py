"""Database engine, schema, and timestamp encoding via SQLAlchemy Core."""

from pvzctl.infrastructure.database.engine import create_db_engine, init_database
from pvzctl.infrastructure.database.schema import items, metadata, points, receptions

__all__ = [
    "create_db_engine",
    "init_database",
    "items",
    "metadata",
    "points",
    "receptions",
]
