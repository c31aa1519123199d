"""Pluggy hook specifications for servicepipe.

One lifecycle event is dispatched after every command execution of a
service constructed with ``plugins=``. One declaration-time hook lets
plugins contribute commands to a service type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from servicepipe.services.base import BusinessService

hookspec = pluggy.HookspecMarker("servicepipe")


class ServicePipeHookSpec:
    """Hook specifications for the servicepipe plugin system."""

    @hookspec
    def post_command(
        self,
        service: str,
        op: str,
        ok: bool,
        violations: list[dict[str, Any]],
    ) -> None:
        """Called after a command reports its result."""

    @hookspec
    def register_commands(
        self, service_type: type[BusinessService]
    ) -> dict[str, dict[str, Any]] | None:
        """Return command name -> ``create_command`` options to declare on *service_type*."""
