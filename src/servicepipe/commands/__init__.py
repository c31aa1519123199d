"""Subcommand modules for servicepipe.

Provides register_commands() which uses deferred imports to keep
``servicepipe --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from servicepipe.commands.inspect_cmd import inspect_cmd

    cli.add_command(inspect_cmd)
