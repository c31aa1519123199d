"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy plugin loading and centralized output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from pathlib import Path

    from servicepipe.config.settings import PipeSettings
    from servicepipe.plugins.manager import PluginManager


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Plugins are discovered on first use so ``--help`` and ``--version``
    never import third-party plugin code.
    """

    def __init__(self, settings: PipeSettings) -> None:
        self.settings = settings
        self._plugins: PluginManager | None = None

        from servicepipe.config.logging import configure_logging

        telemetry = settings.verbose or settings.telemetry.enabled
        configure_logging(
            verbose=settings.verbose, log_json=settings.log_json, telemetry=telemetry
        )

        if telemetry:
            from servicepipe.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def plugins(self) -> PluginManager:
        """The plugin manager (discovered lazily on first access)."""
        if self._plugins is None:
            from servicepipe.plugins.manager import PluginManager

            self._plugins = PluginManager()
        if self.settings.plugins.enabled and not self._plugins.is_loaded:
            self._plugins.discover_and_load(local_dir=self.local_plugin_dir)
        return self._plugins

    @property
    def local_plugin_dir(self) -> Path | None:
        """``[plugins] local_dir``, anchored to the config file that set it."""
        from servicepipe.config.discovery import resolve_config_path

        local_dir = self.settings.plugins.local_dir
        if local_dir is None:
            return None
        return resolve_config_path(local_dir, self.settings.config_path)

    def emit(self, output: str) -> None:
        """Write formatted output to stdout."""
        click.echo(output)
