"""Tests for reception CLI commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from pvzctl.cli import cli


@pytest.fixture
def point_id(cli_runner: CliRunner, _isolated_workspace: None) -> str:
    result = cli_runner.invoke(cli, ["-q", "--role", "moderator", "point", "create", "Kazan"])
    assert result.exit_code == 0, result.output
    return result.output.strip()


def _json(cli_runner: CliRunner, *args: str) -> dict:
    result = cli_runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)["data"]


@pytest.mark.usefixtures("_isolated_workspace")
class TestReceptionFlow:
    def test_full_cycle(self, cli_runner: CliRunner, point_id: str) -> None:
        reception = _json(cli_runner, "reception", "open", point_id)
        assert reception["status"] == "in_progress"

        first = _json(cli_runner, "reception", "add", point_id, "electronics")
        second = _json(cli_runner, "reception", "add", point_id, "clothes")
        assert (first["seq"], second["seq"]) == (1, 2)

        removed = _json(cli_runner, "reception", "remove-last", point_id)
        assert removed["id"] == second["id"]

        closed = _json(cli_runner, "reception", "close", point_id)
        assert closed["status"] == "closed"

        detail = _json(cli_runner, "reception", "get", reception["id"])
        assert [i["id"] for i in detail["items"]] == [first["id"]]

    def test_open_twice(self, cli_runner: CliRunner, point_id: str) -> None:
        cli_runner.invoke(cli, ["reception", "open", point_id])
        result = cli_runner.invoke(cli, ["--json", "reception", "open", point_id])
        assert result.exit_code == 1
        assert '"code": "ALREADY_OPEN"' in result.output

    def test_add_without_open(self, cli_runner: CliRunner, point_id: str) -> None:
        result = cli_runner.invoke(cli, ["reception", "add", point_id, "shoes"])
        assert result.exit_code == 1
        assert "NO_OPEN_RECEPTION" in result.output

    def test_add_rejects_unknown_kind(self, cli_runner: CliRunner, point_id: str) -> None:
        result = cli_runner.invoke(cli, ["reception", "add", point_id, "furniture"])
        assert result.exit_code == 2

    def test_remove_from_empty(self, cli_runner: CliRunner, point_id: str) -> None:
        cli_runner.invoke(cli, ["reception", "open", point_id])
        result = cli_runner.invoke(cli, ["reception", "remove-last", point_id])
        assert result.exit_code == 1
        assert "NO_ITEMS" in result.output

    def test_close_twice(self, cli_runner: CliRunner, point_id: str) -> None:
        cli_runner.invoke(cli, ["reception", "open", point_id])
        assert cli_runner.invoke(cli, ["reception", "close", point_id]).exit_code == 0
        result = cli_runner.invoke(cli, ["reception", "close", point_id])
        assert result.exit_code == 1
        assert "NO_OPEN_RECEPTION" in result.output

    def test_malformed_id(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["reception", "open", "pvz-1"])
        assert result.exit_code == 1
        assert "INVALID_ID" in result.output

    def test_human_detail(self, cli_runner: CliRunner, point_id: str) -> None:
        reception = _json(cli_runner, "reception", "open", point_id)
        cli_runner.invoke(cli, ["reception", "add", point_id, "shoes"])
        result = cli_runner.invoke(cli, ["reception", "get", reception["id"]])
        assert result.exit_code == 0
        assert "#1 shoes" in result.output
