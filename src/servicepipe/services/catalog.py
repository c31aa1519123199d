"""Describe the commands registered on a service type.

Used by the ``inspect`` CLI command. The payload shape is validated here
so the renderer and JSON output never drift apart.
"""

from __future__ import annotations

import inspect
from typing import Any

from pydantic import BaseModel, Field

from servicepipe.services.base import DEFAULT_HOOKS, BusinessService, CommandDefinition


class CommandDescription(BaseModel):
    """One registered command and its derived handles."""

    name: str
    signature: str
    builtin: bool
    initialization: str
    rules: str
    execution: str
    params_attr: str | None = None
    params: list[str] = Field(default_factory=list)
    overridden: list[str] = Field(default_factory=list)


class ServiceDescription(BaseModel):
    """Every command registered on one service type."""

    service: str
    module: str
    constructor_params: list[str]
    commands: list[CommandDescription]


def _overridden_hooks(service_type: type[BusinessService], definition: CommandDefinition) -> list[str]:
    """Handles whose resolved implementation is not the engine default."""
    overridden: list[str] = []
    for handle, fallback in zip(definition.names.hooks, DEFAULT_HOOKS, strict=True):
        default: Any = getattr(BusinessService, handle, None) if definition.builtin else fallback
        if getattr(service_type, handle, None) is not default:
            overridden.append(handle)
    return overridden


def describe_command(
    service_type: type[BusinessService], definition: CommandDefinition
) -> CommandDescription:
    names = definition.names
    method = getattr(service_type, names.name)
    params = list(getattr(service_type, names.params, definition.params) or ())
    return CommandDescription(
        name=names.name,
        signature=f"{names.name}{_strip_self(inspect.signature(method))}",
        builtin=definition.builtin,
        initialization=names.initialization,
        rules=names.rules,
        execution=names.execution,
        params_attr=None if definition.builtin else names.params,
        params=[] if definition.builtin else params,
        overridden=_overridden_hooks(service_type, definition),
    )


def describe_service(service_type: type[BusinessService]) -> ServiceDescription:
    """Build a :class:`ServiceDescription` for *service_type*."""
    constructor_params = getattr(service_type, "_constructor_params", ("data_proxy",))
    return ServiceDescription(
        service=service_type.__qualname__,
        module=service_type.__module__,
        constructor_params=list(constructor_params),
        commands=[describe_command(service_type, d) for d in service_type.command_definitions()],
    )


def _strip_self(signature: inspect.Signature) -> inspect.Signature:
    parameters = [
        p.replace(annotation=inspect.Parameter.empty) for p in signature.parameters.values()
    ]
    if parameters and parameters[0].name == "self":
        parameters = parameters[1:]
    return signature.replace(parameters=parameters, return_annotation=inspect.Signature.empty)
