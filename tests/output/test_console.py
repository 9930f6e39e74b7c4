"""Tests for Rich Console factory and theme."""

from io import StringIO

from pvzctl.domain.types import ItemKind
from pvzctl.output.console import (
    PVZ_THEME,
    create_console,
    get_output,
    style_for_kind,
    style_for_status,
)


class TestCreateConsole:
    def test_returns_console_with_stringio(self) -> None:
        assert isinstance(create_console().file, StringIO)

    def test_no_color_disables_ansi(self) -> None:
        console = create_console(no_color=True)
        console.print("[pvz.ok]OK[/pvz.ok]")
        output = get_output(console)
        assert "\x1b" not in output
        assert "OK" in output

    def test_default_width(self) -> None:
        assert create_console().width == 120


class TestStatusStyles:
    def test_known_statuses(self) -> None:
        assert style_for_status("in_progress") == "pvz.status.in_progress"
        assert style_for_status("closed") == "pvz.status.closed"
        assert "pvz.status.closed" in PVZ_THEME.styles

    def test_unknown_status(self) -> None:
        assert style_for_status("archived") == ""


class TestKindStyles:
    def test_every_kind_has_a_theme_style(self) -> None:
        for kind in ItemKind:
            assert style_for_kind(kind) in PVZ_THEME.styles

    def test_unknown_kind(self) -> None:
        assert style_for_kind("furniture") == ""
