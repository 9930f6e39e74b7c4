"""Shared pytest fixtures and test helpers for pvzctl tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from pvzctl.config.settings import PvzSettings
from pvzctl.infrastructure.database.engine import init_database
from pvzctl.infrastructure.repositories.store import SqlReceivingStore
from pvzctl.services.telemetry import _active_span, disable_telemetry
from tests.fakes import InMemoryReceivingStore


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Keep host PVZCTL_* variables and telemetry state out of every test."""
    for var in ("PVZCTL_CONFIG", "PVZCTL_DATABASE__URL", "PVZCTL_ROLE", "PVZCTL_AUTH__DEFAULT_ROLE"):
        monkeypatch.delenv(var, raising=False)
    yield
    disable_telemetry()
    _active_span.set(None)


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """File-backed SQLite URL in a temp directory."""
    return f"sqlite:///{tmp_path / 'pvz.db'}"


@pytest.fixture
def settings(tmp_path: Path, db_url: str) -> PvzSettings:
    """Settings bound to the temp database, no config file."""
    return PvzSettings.from_cli(workspace_root=tmp_path, db_url=db_url)


@pytest.fixture
def store(db_url: str) -> Generator[SqlReceivingStore]:
    """SQL adapter over a freshly initialized SQLite file."""
    s = SqlReceivingStore(init_database(db_url))
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def fake_store() -> InMemoryReceivingStore:
    """In-memory store implementing the same port."""
    return InMemoryReceivingStore()


@pytest.fixture(params=["fake_store", "store"])
def any_store(request: pytest.FixtureRequest) -> Any:
    """Each storage adapter in turn: the in-memory fake, then SQLite."""
    return request.getfixturevalue(request.param)


@pytest.fixture
def _isolated_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp dir so the CLI uses an isolated ``pvzctl.db``.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def create_point(store: Any, settings: PvzSettings, city: str = "Moscow") -> dict[str, Any]:
    """Create a point via PointRegistry, asserting success."""
    from pvzctl.services.points import PointRegistry

    result = PointRegistry(store, settings).create(city)
    assert result.ok, result.error
    return result.data


def open_reception(store: Any, settings: PvzSettings, point_id: str) -> dict[str, Any]:
    """Open a reception via ReceptionLedger, asserting success."""
    from pvzctl.services.receptions import ReceptionLedger

    result = ReceptionLedger(store, settings).open_reception(point_id)
    assert result.ok, result.error
    return result.data


def add_item(store: Any, settings: PvzSettings, point_id: str, kind: str) -> dict[str, Any]:
    """Add an item via ReceptionLedger, asserting success."""
    from pvzctl.services.receptions import ReceptionLedger

    result = ReceptionLedger(store, settings).add_item(point_id, kind)
    assert result.ok, result.error
    return result.data
