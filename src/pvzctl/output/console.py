"""Rich console and theme used by the human-readable renderers.

Consoles write into a StringIO so renderers return a plain string; Click
decides where it goes. Without a terminal (pipes, CliRunner) Rich emits
no escape codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

from pvzctl.domain.lifecycle import ReceptionStatus
from pvzctl.domain.types import ItemKind

_STATUS_STYLES = {
    ReceptionStatus.IN_PROGRESS: "yellow",
    ReceptionStatus.CLOSED: "green",
}
_KIND_STYLES = {
    ItemKind.ELECTRONICS: "cyan",
    ItemKind.CLOTHES: "magenta",
    ItemKind.SHOES: "blue",
}

PVZ_THEME = Theme(
    {
        "pvz.ok": "bold green",
        "pvz.error": "bold red",
        "pvz.op": "bold cyan",
        "pvz.key": "dim",
        "pvz.id": "bold blue",
        "pvz.time": "dim",
        "pvz.city": "bold",
        **{f"pvz.status.{s}": style for s, style in _STATUS_STYLES.items()},
        **{f"pvz.kind.{k}": style for k, style in _KIND_STYLES.items()},
    }
)


def create_console(*, no_color: bool = False, width: int = 120) -> Console:
    return Console(file=StringIO(), theme=PVZ_THEME, no_color=no_color, highlight=False, width=width)


def get_output(console: Console) -> str:
    """Everything printed to a console from :func:`create_console`."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Theme style for a reception status; empty for unknown values."""
    return f"pvz.status.{status}" if status in _STATUS_STYLES else ""


def style_for_kind(kind: str) -> str:
    """Theme style for an item kind; empty for unknown values."""
    return f"pvz.kind.{kind}" if kind in _KIND_STYLES else ""
