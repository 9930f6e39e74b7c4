"""Locating and reading ``pvzctl.toml``.

The file is looked up from the working directory upwards, the way git
finds ``.git/``; the directory holding it becomes the workspace root that
relative SQLite paths resolve against. ``PVZCTL_CONFIG`` pins one file
and disables the walk.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "pvzctl.toml"
CONFIG_ENV_VAR = "PVZCTL_CONFIG"


def config_candidates(start: Path | None = None) -> Iterator[Path]:
    """Yield ``pvzctl.toml`` paths from *start* (default: cwd) up to the filesystem root."""
    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        yield directory / CONFIG_FILENAME


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file in effect, or None.

    An ``PVZCTL_CONFIG`` pointing at a missing file yields None rather than
    falling back to the walk.
    """
    pinned = os.environ.get(CONFIG_ENV_VAR)
    if pinned:
        path = Path(pinned).expanduser()
        return path if path.is_file() else None
    return next((c for c in config_candidates(start) if c.is_file()), None)


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*, reporting syntax errors as a CLI usage failure."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise click.ClickException(f"Invalid TOML in {path}: {exc}") from exc
