"""Tests for point CLI commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from pvzctl.cli import cli


def _create(cli_runner: CliRunner, city: str = "Moscow") -> dict:
    result = cli_runner.invoke(cli, ["--json", "--role", "moderator", "point", "create", city])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)["data"]


@pytest.mark.usefixtures("_isolated_workspace")
class TestPointCreate:
    def test_moderator_creates(self, cli_runner: CliRunner) -> None:
        data = _create(cli_runner, "Saint Petersburg")
        assert data["city"] == "Saint Petersburg"

    def test_human_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--role", "moderator", "point", "create", "Kazan"])
        assert result.exit_code == 0
        assert "OK" in result.output
        assert "create_point" in result.output

    def test_employee_forbidden(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "point", "create", "Kazan"])
        assert result.exit_code == 1
        assert '"code": "FORBIDDEN"' in result.output
        assert '"category": "forbidden"' in result.output
        listing = cli_runner.invoke(cli, ["--json", "point", "all"])
        assert json.loads(listing.output)["data"]["count"] == 0

    def test_role_from_config(self, cli_runner: CliRunner, tmp_path) -> None:
        (tmp_path / "pvzctl.toml").write_text('[auth]\ndefault_role = "moderator"\n')
        result = cli_runner.invoke(cli, ["point", "create", "Kazan"])
        assert result.exit_code == 0

    def test_invalid_city(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "--role", "moderator", "point", "create", "Paris"]
        )
        assert result.exit_code == 1
        assert '"code": "INVALID_CITY"' in result.output

    def test_quiet_prints_id(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "--role", "moderator", "point", "create", "Kazan"])
        assert result.exit_code == 0
        assert len(result.output.strip()) == 36


@pytest.mark.usefixtures("_isolated_workspace")
class TestPointRead:
    def test_get(self, cli_runner: CliRunner) -> None:
        created = _create(cli_runner)
        result = cli_runner.invoke(cli, ["--json", "point", "get", created["id"]])
        assert result.exit_code == 0
        assert json.loads(result.output)["data"] == created

    def test_get_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["point", "get", "00000000-0000-0000-0000-000000000000"]
        )
        assert result.exit_code == 1
        assert "POINT_NOT_FOUND" in result.output

    def test_all(self, cli_runner: CliRunner) -> None:
        ids = [_create(cli_runner)["id"] for _ in range(3)]
        result = cli_runner.invoke(cli, ["-q", "point", "all"])
        assert result.output.split() == list(reversed(ids))


@pytest.mark.usefixtures("_isolated_workspace")
class TestPointList:
    def test_pages_with_cursor(self, cli_runner: CliRunner) -> None:
        ids = [_create(cli_runner)["id"] for _ in range(3)]
        first = cli_runner.invoke(cli, ["--json", "point", "list", "--limit", "2"])
        assert first.exit_code == 0
        page = json.loads(first.output)["data"]
        assert [e["point"]["id"] for e in page["items"]] == [ids[2], ids[1]]

        cursor = page["next_cursor"]
        second = cli_runner.invoke(
            cli,
            [
                "--json",
                "point",
                "list",
                "--limit",
                "2",
                "--after-date",
                cursor["registered_at"],
                "--after-id",
                cursor["id"],
            ],
        )
        page = json.loads(second.output)["data"]
        assert [e["point"]["id"] for e in page["items"]] == [ids[0]]
        assert page["next_cursor"] is None

    def test_includes_receptions(self, cli_runner: CliRunner) -> None:
        point_id = _create(cli_runner)["id"]
        cli_runner.invoke(cli, ["reception", "open", point_id])
        cli_runner.invoke(cli, ["reception", "add", point_id, "shoes"])
        result = cli_runner.invoke(cli, ["--json", "point", "list"])
        entry = json.loads(result.output)["data"]["items"][0]
        assert entry["receptions"][0]["items"][0]["kind"] == "shoes"

    def test_bad_date(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["point", "list", "--start-date", "last week"])
        assert result.exit_code == 2
        assert "ISO 8601" in result.output

    def test_inverted_range(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli,
            [
                "point",
                "list",
                "--start-date",
                "2026-02-01T00:00:00Z",
                "--end-date",
                "2026-01-01T00:00:00Z",
            ],
        )
        assert result.exit_code == 1
        assert "INVALID_DATE_RANGE" in result.output

    def test_half_cursor(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["point", "list", "--after-date", "2026-01-01T00:00:00Z"]
        )
        assert result.exit_code == 1
        assert "INVALID_CURSOR" in result.output

    def test_limit_too_large(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["point", "list", "--limit", "31"])
        assert result.exit_code == 1
        assert "INVALID_LIMIT" in result.output

    def test_verbose_shows_telemetry(self, cli_runner: CliRunner) -> None:
        _create(cli_runner)
        result = cli_runner.invoke(cli, ["-v", "point", "list"])
        assert result.exit_code == 0
        assert "fetch_points" in result.output

    def test_bare_pages_points_only(self, cli_runner: CliRunner) -> None:
        ids = [_create(cli_runner)["id"] for _ in range(2)]
        cli_runner.invoke(cli, ["reception", "open", ids[1]])
        first = cli_runner.invoke(cli, ["--json", "point", "list", "--bare", "--limit", "1"])
        assert first.exit_code == 0, first.output
        body = json.loads(first.output)
        assert body["op"] == "list_point_page"
        assert [p["id"] for p in body["data"]["items"]] == [ids[1]]
        assert "receptions" not in body["data"]["items"][0]

        cursor = body["data"]["next_cursor"]
        second = cli_runner.invoke(
            cli,
            [
                "--json",
                "point",
                "list",
                "--bare",
                "--limit",
                "1",
                "--after-date",
                cursor["registered_at"],
                "--after-id",
                cursor["id"],
            ],
        )
        assert [p["id"] for p in json.loads(second.output)["data"]["items"]] == [ids[0]]

    def test_bare_human_output_is_table(self, cli_runner: CliRunner) -> None:
        point_id = _create(cli_runner, "Kazan")["id"]
        result = cli_runner.invoke(cli, ["point", "list", "--bare"])
        assert result.exit_code == 0
        assert point_id in result.output
        assert "1 points" in result.output

    def test_bare_rejects_date_filters(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["point", "list", "--bare", "--start-date", "2026-01-01T00:00:00Z"]
        )
        assert result.exit_code == 2
        assert "--bare" in result.output
