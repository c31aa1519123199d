"""Plugin discovery, command contributions and lifecycle dispatch.

Plugins come from two places: distributions advertising the
``servicepipe.plugins`` entry-point group, and single-file modules in a
local plugin directory (``[plugins] local_dir`` in ``servicepipe.toml``).

A plugin may contribute commands to a service type (``register_commands``)
and observe every finished command (``post_command``).
INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any

import pluggy

from servicepipe.plugins.hookspecs import ServicePipeHookSpec

if TYPE_CHECKING:
    from servicepipe.services.base import BusinessService
    from servicepipe.services.result import CommandResult

PROJECT_NAME = "servicepipe"
ENTRY_POINT_GROUP = "servicepipe.plugins"
LOCAL_MODULE_PREFIX = "servicepipe_local_plugin_"

logger = logging.getLogger(__name__)


class PluginManager:
    """Owns the pluggy manager behind a service's ``plugins=`` argument."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ServicePipeHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point plugins, then single-file plugins from *local_dir*.

        Returns the names of every registered plugin.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        if local_dir is not None:
            self._discover_local(local_dir)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance under *name* (default: its class name)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Stop dispatching to *plugin*."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discovery has already run."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [name for name, _plugin in self._named_plugins()]

    # ------------------------------------------------------------------
    # Service lifecycle
    # ------------------------------------------------------------------

    def notify_command(self, service_name: str, result: CommandResult) -> None:
        """Relay a finished command to every ``post_command`` implementation."""
        try:
            self._pm.hook.post_command(
                service=service_name,
                op=result.op,
                ok=result.ok,
                violations=[v.model_dump() for v in result.violations],
            )
        except Exception:
            logger.warning("post_command dispatch failed for %s", result.op, exc_info=True)

    def apply_commands(self, service_type: type[BusinessService]) -> list[str]:
        """Declare every plugin-contributed command on *service_type*.

        Plugins are asked one at a time; a plugin that raises, or a single
        invalid declaration, is logged and skipped.

        Returns the names of the commands declared.
        """
        from servicepipe.domain.exceptions import ConfigurationError
        from servicepipe.services.base import create_command

        declared: list[str] = []
        for plugin_name, plugin in self._named_plugins():
            for command_name, options in self._collect_commands(plugin_name, plugin, service_type):
                try:
                    create_command(command_name, service_type, options or {})
                except (ConfigurationError, TypeError):
                    logger.warning(
                        "Skipping command %r from plugin %s",
                        command_name,
                        plugin_name,
                        exc_info=True,
                    )
                    continue
                declared.append(command_name)
        return declared

    def _collect_commands(
        self, plugin_name: str, plugin: object, service_type: type[BusinessService]
    ) -> list[tuple[str, Any]]:
        hook = getattr(plugin, "register_commands", None)
        if hook is None:
            return []
        try:
            command_map = hook(service_type=service_type)
        except Exception:
            logger.warning("Failed to collect commands from plugin %s", plugin_name, exc_info=True)
            return []
        if command_map is None:
            return []
        if not isinstance(command_map, dict):
            logger.warning("Plugin %s returned non-dict command declarations", plugin_name)
            return []
        return list(command_map.items())

    def _named_plugins(self) -> Iterator[tuple[str, object]]:
        for plugin in self._pm.get_plugins():
            yield self._pm.get_name(plugin) or plugin.__class__.__name__, plugin

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Register hook-bearing classes from each public ``*.py`` in *local_dir*."""
        if not local_dir.is_dir():
            logger.debug("Local plugin directory %s does not exist", local_dir)
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module = self._import_local(py_file)
            if module is None:
                continue
            for cls in self._plugin_classes(module):
                try:
                    self.register_plugin(cls(), name=module.__name__)
                except Exception:
                    logger.warning(
                        "Failed to instantiate plugin class %s from %s",
                        cls.__name__,
                        py_file,
                        exc_info=True,
                    )

    @staticmethod
    def _import_local(py_file: Path) -> ModuleType | None:
        module_name = f"{LOCAL_MODULE_PREFIX}{py_file.stem}"
        spec = importlib.util.spec_from_file_location(module_name, py_file)
        if spec is None or spec.loader is None:
            logger.warning("Could not create module spec for %s", py_file)
            return None
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
            sys.modules.pop(module_name, None)
            return None
        return module

    def _plugin_classes(self, module: ModuleType) -> list[type]:
        return [
            obj
            for _name, obj in inspect.getmembers(module, inspect.isclass)
            if obj.__module__ == module.__name__ and self._declares_hooks(obj)
        ]

    def _normalize_plugin_instances(self) -> None:
        """Swap entry-point plugin classes for instances so ``self`` is bound."""
        for plugin_name, plugin in list(self._named_plugins()):
            if not inspect.isclass(plugin) or not self._declares_hooks(plugin):
                continue
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue
            self._pm.register(instance, name=plugin_name)

    @staticmethod
    def _declares_hooks(cls: type) -> bool:
        """True when a public attribute of *cls* carries the ``servicepipe_impl`` marker."""
        return any(
            callable(member) and getattr(member, f"{PROJECT_NAME}_impl", None)
            for name, member in inspect.getmembers(cls)
            if not name.startswith("_")
        )
