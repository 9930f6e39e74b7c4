"""Storage port and its SQLAlchemy adapter."""

from pvzctl.infrastructure.repositories.base import (
    ItemRow,
    PointRow,
    ReceivingStore,
    ReceptionRow,
)
from pvzctl.infrastructure.repositories.store import SqlReceivingStore

__all__ = [
    "ItemRow",
    "PointRow",
    "ReceivingStore",
    "ReceptionRow",
    "SqlReceivingStore",
]
