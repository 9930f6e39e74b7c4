"""Tests for database schema definitions."""

import pytest
from sqlalchemy import create_engine, inspect, insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from pvzctl.infrastructure.database.schema import items, metadata, points, receptions

TS = "2026-01-01T00:00:00.000000Z"


def _in_memory_engine() -> Engine:
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine("sqlite:///:memory:")
    metadata.create_all(engine)
    return engine


class TestSchemaCreation:
    def test_tables(self) -> None:
        inspector = inspect(_in_memory_engine())
        assert set(inspector.get_table_names()) == {"points", "receptions", "items"}

    def test_indexes(self) -> None:
        inspector = inspect(_in_memory_engine())
        names = {ix["name"] for ix in inspector.get_indexes("receptions")}
        assert "uq_receptions_one_open_per_point" in names
        assert "ix_receptions_point" in names

    def test_create_all_is_idempotent(self) -> None:
        engine = _in_memory_engine()
        metadata.create_all(engine)


class TestConstraints:
    def _seed(self, engine: Engine) -> None:
        with engine.begin() as conn:
            conn.execute(insert(points).values(id="p1", city="Kazan", registered_at=TS))
            conn.execute(
                insert(receptions).values(id="r1", point_id="p1", opened_at=TS, status="closed")
            )

    def test_second_open_reception_rejected(self) -> None:
        engine = _in_memory_engine()
        self._seed(engine)
        with engine.begin() as conn:
            conn.execute(insert(receptions).values(id="r2", point_id="p1", opened_at=TS))
        with pytest.raises(IntegrityError), engine.begin() as conn:
            conn.execute(insert(receptions).values(id="r3", point_id="p1", opened_at=TS))

    def test_many_closed_receptions_allowed(self) -> None:
        engine = _in_memory_engine()
        self._seed(engine)
        with engine.begin() as conn:
            conn.execute(
                insert(receptions).values(id="r2", point_id="p1", opened_at=TS, status="closed")
            )

    def test_status_defaults_to_in_progress(self) -> None:
        engine = _in_memory_engine()
        self._seed(engine)
        with engine.begin() as conn:
            conn.execute(insert(receptions).values(id="r2", point_id="p1", opened_at=TS))
            status = conn.execute(
                receptions.select().where(receptions.c.id == "r2")
            ).one().status
        assert status == "in_progress"

    def test_duplicate_seq_rejected(self) -> None:
        engine = _in_memory_engine()
        self._seed(engine)
        row = {"reception_id": "r1", "kind": "shoes", "added_at": TS, "seq": 1}
        with engine.begin() as conn:
            conn.execute(insert(items).values(id="i1", **row))
        with pytest.raises(IntegrityError), engine.begin() as conn:
            conn.execute(insert(items).values(id="i2", **row))
