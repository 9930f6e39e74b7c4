"""Root CLI group for pvzctl with global flags and command registration."""

from __future__ import annotations

import click

from pvzctl import __version__
from pvzctl.commands import register_commands
from pvzctl.commands._context import AppContext
from pvzctl.config.settings import PvzSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="pvzctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output (ids only).")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--db", "db_url", default=None, help="Override the database URL.")
@click.option(
    "--role",
    type=click.Choice(["employee", "moderator"]),
    default=None,
    help="Caller role (default from [auth] default_role).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    db_url: str | None,
    role: str | None,
) -> None:
    """pvzctl: pickup point goods receiving CLI."""
    ctx.ensure_object(dict)
    flags: dict[str, object] = {
        "json_output": json_output,
        "quiet": quiet,
        "verbose": verbose,
        "log_json": log_json,
    }
    if role is not None:
        flags["role"] = role
    settings = PvzSettings.from_cli(config_path=config_path, db_url=db_url, **flags)
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
