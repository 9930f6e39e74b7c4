"""Subcommand modules for pvzctl.

Provides register_commands() which uses deferred imports to keep
``pvzctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from pvzctl.commands.point import point
    from pvzctl.commands.reception import reception

    cli.add_command(point)
    cli.add_command(reception)

    # --- Standalone commands ---
    from pvzctl.commands.init_cmd import init_cmd

    cli.add_command(init_cmd)
