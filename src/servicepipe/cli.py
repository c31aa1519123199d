"""Root CLI group for servicepipe with global flags and command registration."""

from __future__ import annotations

import click

from servicepipe import __version__
from servicepipe.commands import register_commands
from servicepipe.commands._context import AppContext
from servicepipe.config.settings import PipeSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="servicepipe")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and command telemetry.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option(
    "--telemetry",
    is_flag=True,
    help="Record per-phase command spans without debug logging.",
)
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    telemetry: bool,
    config_path: str | None,
) -> None:
    """servicepipe — three-phase business service commands."""
    ctx.ensure_object(dict)
    # Only a set flag overrides [telemetry] from the config file.
    overrides = {"telemetry": {"enabled": True}} if telemetry else {}
    settings = PipeSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        verbose=verbose,
        log_json=log_json,
        **overrides,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
