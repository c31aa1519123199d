"""Rich/JSON output helpers for service descriptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table
from rich.text import Text

from servicepipe.output.console import create_console, get_output

if TYPE_CHECKING:
    from servicepipe.services.catalog import CommandDescription, ServiceDescription


def _hook_cell(handle: str, command: CommandDescription) -> Text:
    if handle in command.overridden:
        return Text(f"{handle} *", style="pipe.override")
    return Text(handle, style="pipe.hook")


def format_description(
    description: ServiceDescription,
    *,
    json_output: bool = False,
    no_color: bool = False,
) -> str:
    """Format a ServiceDescription for display.

    Args:
        description: The service description to format.
        json_output: If True, return JSON; otherwise render a table.
        no_color: Disable ANSI escape codes in the table.
    """
    if json_output:
        return description.model_dump_json(indent=2)

    console = create_console(no_color=no_color, width=200)
    params = ", ".join(description.constructor_params) or "-"
    console.print(
        Text.assemble(
            (f"{description.module}.{description.service}", "pipe.service"),
            ("  constructor: ", "pipe.key"),
            params,
        )
    )

    table = Table(show_header=True, header_style="bold", show_lines=False)
    table.add_column("command")
    table.add_column("initialization")
    table.add_column("rules")
    table.add_column("execution")
    table.add_column("params")

    for command in description.commands:
        style = "pipe.builtin" if command.builtin else "pipe.command"
        table.add_row(
            Text(command.signature, style=style),
            _hook_cell(command.initialization, command),
            _hook_cell(command.rules, command),
            _hook_cell(command.execution, command),
            ", ".join(command.params) or "-",
        )

    console.print(table)
    console.print(Text("* overridden hook", style="pipe.key"))
    return get_output(console).rstrip("\n")
