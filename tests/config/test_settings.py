"""Tests for PvzSettings: unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from pvzctl.config.settings import PvzSettings


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = PvzSettings.from_cli(workspace_root=tmp_path)
        assert settings.workspace_root == tmp_path
        assert settings.json_output is False
        assert settings.role is None
        assert settings.effective_role == "employee"
        assert settings.pagination.default_limit == 10

    def test_frozen(self, tmp_path: Path) -> None:
        settings = PvzSettings.from_cli(workspace_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]

    def test_relative_sqlite_anchored_at_workspace(self, tmp_path: Path) -> None:
        settings = PvzSettings.from_cli(workspace_root=tmp_path)
        assert settings.db_url == f"sqlite:///{tmp_path / 'pvzctl.db'}"

    def test_memory_url_untouched(self, tmp_path: Path) -> None:
        settings = PvzSettings.from_cli(workspace_root=tmp_path, db_url="sqlite:///:memory:")
        assert settings.db_url == "sqlite:///:memory:"

    def test_postgres_url_untouched(self, tmp_path: Path) -> None:
        url = "postgresql+psycopg://pvz:secret@db/pvz"
        settings = PvzSettings.from_cli(workspace_root=tmp_path, db_url=url)
        assert settings.db_url == url


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "pvzctl.toml").write_text(
            '[pagination]\ndefault_limit = 5\n[auth]\ndefault_role = "moderator"\n'
        )
        settings = PvzSettings.from_cli(workspace_root=tmp_path)
        assert settings.pagination.default_limit == 5
        assert settings.pagination.max_limit == 30
        assert settings.effective_role == "moderator"

    def test_workspace_is_config_parent(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "pvzctl.toml").write_text("")
        child = tmp_path / "sub"
        child.mkdir()
        monkeypatch.chdir(child)
        settings = PvzSettings.from_cli()
        assert settings.workspace_root == tmp_path
        assert settings.config_path == tmp_path / "pvzctl.toml"

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.toml"
        path.write_text("[database]\nstatement_timeout_seconds = 1.5\n")
        settings = PvzSettings.from_cli(config_path=str(path), workspace_root=tmp_path)
        assert settings.database.statement_timeout_seconds == 1.5

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "pvzctl.toml").write_text("[pagination\n")
        with pytest.raises(click.ClickException):
            PvzSettings.from_cli(workspace_root=tmp_path)


class TestPriority:
    def test_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "pvzctl.toml").write_text("[pagination]\ndefault_limit = 5\n")
        monkeypatch.setenv("PVZCTL_PAGINATION__DEFAULT_LIMIT", "7")
        settings = PvzSettings.from_cli(workspace_root=tmp_path)
        assert settings.pagination.default_limit == 7

    def test_cli_role_beats_config(self, tmp_path: Path) -> None:
        (tmp_path / "pvzctl.toml").write_text('[auth]\ndefault_role = "employee"\n')
        settings = PvzSettings.from_cli(workspace_root=tmp_path, role="moderator")
        assert settings.effective_role == "moderator"

    def test_db_flag_keeps_other_database_fields(self, tmp_path: Path) -> None:
        (tmp_path / "pvzctl.toml").write_text("[database]\nstatement_timeout_seconds = 2.0\n")
        settings = PvzSettings.from_cli(workspace_root=tmp_path, db_url="sqlite:///x.db")
        assert settings.database.url == "sqlite:///x.db"
        assert settings.database.statement_timeout_seconds == 2.0
