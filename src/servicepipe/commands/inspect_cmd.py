"""Command: describe the commands registered on a service type."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

import click

from servicepipe.commands._base import PipeCommand

if TYPE_CHECKING:
    from servicepipe.commands._context import AppContext
    from servicepipe.services.base import BusinessService


def resolve_service(target: str) -> type[BusinessService]:
    """Resolve ``module:attr`` to a BusinessService type.

    *attr* may be dotted and may name a service type, a ServiceBuilder,
    or a service instance.
    """
    from servicepipe.services.base import BusinessService, ServiceBuilder

    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        msg = f"Target {target!r} must look like 'package.module:ServiceName'"
        raise click.BadParameter(msg, param_hint="TARGET")

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"Cannot import {module_name!r}: {exc}"
        raise click.ClickException(msg) from exc

    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            msg = f"{module_name!r} has no attribute {attr_path!r}"
            raise click.ClickException(msg) from exc

    if isinstance(obj, ServiceBuilder):
        return obj.service
    if isinstance(obj, BusinessService):
        return type(obj)
    if isinstance(obj, type) and issubclass(obj, BusinessService):
        return obj
    msg = f"{target} is not a BusinessService type, builder, or instance"
    raise click.ClickException(msg)


@click.command(
    "inspect",
    cls=PipeCommand,
    examples="""\
  servicepipe inspect servicepipe:BusinessService
  servicepipe inspect myapp.services:CustomerService
  servicepipe --json inspect myapp.services:orders_builder --no-plugins""",
)
@click.argument("target")
@click.option("--no-plugins", is_flag=True, help="Skip plugin command declarations.")
@click.pass_obj
def inspect_cmd(app: AppContext, target: str, no_plugins: bool) -> None:
    """Describe the commands registered on TARGET (module:attr)."""
    from servicepipe.output.formatters import format_description
    from servicepipe.services.catalog import describe_service

    service_type = resolve_service(target)
    if app.settings.plugins.enabled and not no_plugins:
        app.plugins.apply_commands(service_type)

    description = describe_service(service_type)
    app.emit(format_description(description, json_output=app.settings.json_output))
