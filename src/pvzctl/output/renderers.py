"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from pvzctl.output.console import create_console, get_output, style_for_kind, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from pvzctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
        if verbose:
            _render_meta(console, result)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: ids only."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(i for i in (_extract_id(item) for item in items) if i)

    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    """Extract an id from a bare point dict or a nested page entry."""
    if not isinstance(item, dict):
        return ""
    if "point" in item and isinstance(item["point"], dict):
        item = item["point"]
    val = item.get("id")
    return str(val) if val is not None else ""


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="pvz.ok")
    op = Text(f"  {result.op}", style="pvz.op")
    console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}:", style="pvz.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="pvz.id")
    elif key.endswith("_at"):
        v = Text(str(value), style="pvz.time")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    else:
        v = Text(str(value))
    console.print(k, v)


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(Text(f"    {k}: {v}"))


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _reception_label(reception: dict[str, Any], item_count: int) -> Text:
    status = str(reception.get("status", ""))
    label = Text()
    label.append(str(reception.get("id", "")), style="pvz.id")
    label.append("  ")
    label.append(status, style=style_for_status(status))
    label.append(f"  opened {reception.get('opened_at', '')}", style="pvz.time")
    label.append(f"  ({item_count} items)")
    return label


def _item_label(item: dict[str, Any]) -> Text:
    label = Text()
    label.append(f"#{item.get('seq', '?')} ")
    kind = str(item.get("kind", ""))
    label.append(kind, style=style_for_kind(kind))
    label.append(f"  {item.get('added_at', '')}", style="pvz.time")
    label.append(f"  {item.get('id', '')}", style="dim")
    return label


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="pvz.error")
    op = Text(f"  {result.op}", style="pvz.op")
    code = Text(f"[{err.code}]" if err else "", style="pvz.key")
    console.print(label, op, code, Text(msg))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Record renderers ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


def _render_record(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single point, reception, or item."""
    _status_line(console, result)
    for key in (
        "id",
        "city",
        "registered_at",
        "point_id",
        "reception_id",
        "status",
        "opened_at",
        "kind",
        "seq",
        "added_at",
    ):
        if key in result.data:
            _field(console, key, result.data[key])


def _render_reception_detail(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    _status_line(console, result)
    reception = result.data.get("reception", {})
    items = result.data.get("items", [])
    tree = Tree(_reception_label(reception, len(items)))
    for item in items:
        tree.add(_item_label(item))
    console.print(tree)


# ── Listing renderers ─────────────────────────────────────────────────


def _render_point_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render bare point listings as a table."""
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="pvz.id", no_wrap=True)
    table.add_column("City", style="pvz.city")
    table.add_column("Registered", style="pvz.time")
    for point in items:
        table.add_row(
            str(point.get("id", "")),
            str(point.get("city", "")),
            str(point.get("registered_at", "")),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} points")
    _render_next_cursor(console, result.data.get("next_cursor"))


def _render_point_page(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render an enriched page as one tree per point."""
    entries = result.data.get("items", [])
    for entry in entries:
        point = entry.get("point", {})
        label = Text()
        label.append(str(point.get("id", "")), style="pvz.id")
        label.append("  ")
        label.append(str(point.get("city", "")), style="pvz.city")
        label.append(f"  registered {point.get('registered_at', '')}", style="pvz.time")
        tree = Tree(label)
        for detail in entry.get("receptions", []):
            items = detail.get("items", [])
            branch = tree.add(_reception_label(detail.get("reception", {}), len(items)))
            if verbose:
                for item in items:
                    branch.add(_item_label(item))
        console.print(tree)

    console.print(f"\n{result.data.get('count', len(entries))} points")
    _render_next_cursor(console, result.data.get("next_cursor"))


def _render_next_cursor(console: Console, cursor: dict[str, Any] | None) -> None:
    if not cursor:
        return
    console.print(
        Text(
            f"next: --after-date {cursor.get('registered_at')} --after-id {cursor.get('id')}",
            style="pvz.key",
        )
    )


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Points
    "create_point": _render_record,
    "get_point": _render_record,
    "list_points": _render_point_page,
    "list_point_page": _render_point_table,
    "list_all_points": _render_point_table,
    # Receptions
    "open_reception": _render_record,
    "close_reception": _render_record,
    "add_item": _render_record,
    "remove_last_item": _render_record,
    "get_reception": _render_reception_detail,
}
