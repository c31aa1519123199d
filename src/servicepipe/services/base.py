"""BusinessService — the service definition engine.

Every operation a service exposes follows the same three-phase shape
(initialization, rules, execution). Five operations are built in; any
number of further ones can be declared with :func:`create_command`,
either directly or through the builder returned by
:meth:`BusinessService.extend`.

Hooks are plain methods resolved by name at execution time, so a
subclass override always wins over the engine's defaults.

Usage::

    Customers = (
        BusinessService.extend(params=["data_proxy", "mailer"])
        .create_command("welcome_command", on_validation_success=send_welcome, params=["email"])
        .service
    )
    Customers(proxy, mailer).welcome_command("a@example.com").execute(print)
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

from servicepipe.domain.exceptions import ConfigurationError
from servicepipe.domain.naming import BuiltinOperation, CommandNames, is_identifier
from servicepipe.services.command import Command, Context, Done
from servicepipe.services.result import CommandResult

if TYPE_CHECKING:
    from servicepipe.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

COMMAND_OPTIONS = frozenset({"on_initialization", "get_rules", "on_validation_success", "params"})

# Attributes of the service type itself; no declaration may replace them.
ENGINE_ATTRIBUTES = frozenset(
    {
        "_commands",
        "_command_completed",
        "_constructor_params",
        "_pipeline",
        "_plugins",
        "_proxy",
        "command_definitions",
        "extend",
        "overridable_methods",
    }
)


class DataProxy(Protocol):
    """Data-access collaborator invoked by the built-in execution hooks.

    Each method receives the command's ``done`` continuation and must call
    it (possibly later) with the operation's result.
    """

    def get_all(self, done: Done) -> Any: ...

    def get_by_id(self, entity_id: Any, done: Done) -> Any: ...

    def insert(self, data: Any, done: Done) -> Any: ...

    def update(self, data: Any, done: Done) -> Any: ...

    def delete(self, entity_id: Any, done: Done) -> Any: ...


@dataclass(frozen=True)
class CommandDefinition:
    """Registry record for one declared operation."""

    names: CommandNames
    params: tuple[str, ...] = ()
    builtin: bool = False

    @property
    def name(self) -> str:
        return self.names.name


# --- Defaults for declared commands ---


def default_initialization(self: Any, context: Context, done: Done) -> None:
    done()


def default_rules(self: Any, context: Context, done: Done) -> None:
    done([])


def default_execution(self: Any, context: Context, done: Done) -> None:
    done()


DEFAULT_HOOKS: tuple[Callable[..., None], ...] = (
    default_initialization,
    default_rules,
    default_execution,
)


class BusinessService:
    """Base service exposing get-all, get-by-id, insert, update and delete.

    Each ``*_command`` method returns an un-executed :class:`Command`.
    Override the ``_on_<op>_command_initialization``,
    ``_get_rules_for_<op>`` and ``_<op>`` hooks to customize a phase.
    Built-in hooks receive the domain argument (if any) ahead of
    ``context`` and ``done``.
    """

    _commands: ClassVar[dict[str, CommandDefinition]] = {}

    data_proxy: DataProxy | None = None
    _plugins: PluginManager | None = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Declarations on a subclass must never leak into its parent.
        cls._commands = dict(cls._commands)

    def __init__(
        self,
        data_proxy: DataProxy | None = None,
        *,
        plugins: PluginManager | None = None,
    ) -> None:
        self.data_proxy = data_proxy
        self._plugins = plugins

    # ------------------------------------------------------------------
    # Built-in commands
    # ------------------------------------------------------------------

    def get_all_command(self) -> Command:
        return self._pipeline(BuiltinOperation.GET_ALL.names)

    def get_by_id_command(self, entity_id: Any) -> Command:
        return self._pipeline(BuiltinOperation.GET_BY_ID.names, hook_args=(entity_id,))

    def insert_command(self, data: Any) -> Command:
        return self._pipeline(BuiltinOperation.INSERT.names, hook_args=(data,))

    def update_command(self, data: Any) -> Command:
        return self._pipeline(BuiltinOperation.UPDATE.names, hook_args=(data,))

    def delete_command(self, entity_id: Any) -> Command:
        return self._pipeline(BuiltinOperation.DELETE.names, hook_args=(entity_id,))

    # --- get_all ---

    def _on_get_all_command_initialization(self, context: Context, done: Done) -> None:
        done()

    def _get_rules_for_get_all(self, context: Context, done: Done) -> None:
        done([])

    def _get_all(self, context: Context, done: Done) -> None:
        self._proxy().get_all(done)

    # --- get_by_id ---

    def _on_get_by_id_command_initialization(
        self, entity_id: Any, context: Context, done: Done
    ) -> None:
        done()

    def _get_rules_for_get_by_id(self, entity_id: Any, context: Context, done: Done) -> None:
        done([])

    def _get_by_id(self, entity_id: Any, context: Context, done: Done) -> None:
        self._proxy().get_by_id(entity_id, done)

    # --- insert ---

    def _on_insert_command_initialization(self, data: Any, context: Context, done: Done) -> None:
        done()

    def _get_rules_for_insert(self, data: Any, context: Context, done: Done) -> None:
        done([])

    def _insert(self, data: Any, context: Context, done: Done) -> None:
        self._proxy().insert(data, done)

    # --- update ---

    def _on_update_command_initialization(self, data: Any, context: Context, done: Done) -> None:
        done()

    def _get_rules_for_update(self, data: Any, context: Context, done: Done) -> None:
        done([])

    def _update(self, data: Any, context: Context, done: Done) -> None:
        self._proxy().update(data, done)

    # --- delete ---

    def _on_delete_command_initialization(
        self, entity_id: Any, context: Context, done: Done
    ) -> None:
        done()

    def _get_rules_for_delete(self, entity_id: Any, context: Context, done: Done) -> None:
        done([])

    def _delete(self, entity_id: Any, context: Context, done: Done) -> None:
        self._proxy().delete(entity_id, done)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    @classmethod
    def command_definitions(cls) -> tuple[CommandDefinition, ...]:
        """All operations registered on this service type, in declaration order."""
        return tuple(cls._commands.values())

    @classmethod
    def overridable_methods(cls) -> frozenset[str]:
        """Public command names and derived handles of every registered command."""
        names: set[str] = set()
        for definition in cls._commands.values():
            names.add(definition.name)
            names.update(definition.names.hooks)
            if not definition.builtin:
                names.add(definition.names.params)
        return frozenset(names)

    @classmethod
    def extend(
        cls,
        *,
        params: Iterable[str] | None = None,
        functions: Mapping[str, Callable[..., Any]] | None = None,
        name: str | None = None,
    ) -> ServiceBuilder:
        """Derive a new service type with custom constructor fields and hooks.

        Args:
            params: Constructor field names bound positionally
                (default: ``("data_proxy",)``).
            functions: Method name -> implementation, installed on the new
                type. Names that are not overridable methods of this type
                are still installed, with a warning.
            name: Class name of the derived type.
        """
        if isinstance(params, str):
            msg = "params must be a sequence of field names, not a string"
            raise ConfigurationError(msg)
        fields = ("data_proxy",) if params is None else tuple(params)
        _validate_fields(fields, kind="Constructor param", reserved=tuple(ENGINE_ATTRIBUTES))
        type_name = name or f"Extended{cls.__name__}"
        if not is_identifier(type_name):
            msg = f"Service name {type_name!r} is not a valid identifier"
            raise ConfigurationError(msg)

        functions = dict(functions or {})
        overridable = cls.overridable_methods()
        for key in functions:
            if key not in overridable:
                logger.warning(
                    "The method '%s' is not an overridable method of %s",
                    key,
                    cls.__name__,
                )

        def __init__(self: BusinessService, *args: Any, plugins: PluginManager | None = None) -> None:
            if len(args) > len(fields):
                msg = (
                    f"{type(self).__name__}() takes at most {len(fields)} "
                    f"positional arguments ({len(args)} given)"
                )
                raise TypeError(msg)
            cls.__init__(self, plugins=plugins)
            for index, field in enumerate(fields):
                setattr(self, field, args[index] if index < len(args) else None)

        namespace: dict[str, Any] = {
            "__init__": __init__,
            "__qualname__": type_name,
            "_constructor_params": fields,
            **functions,
        }
        service = type(type_name, (cls,), namespace)
        logger.debug("Extended %s as %s", cls.__name__, type_name)
        return ServiceBuilder(service)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _proxy(self) -> DataProxy:
        if self.data_proxy is None:
            msg = f"{type(self).__name__} has no data_proxy configured"
            raise AttributeError(msg)
        return self.data_proxy

    def _pipeline(
        self,
        names: CommandNames,
        *,
        hook_args: tuple[Any, ...] = (),
        args: tuple[Any, ...] | None = None,
    ) -> Command:
        """Wire the three hooks named by *names* into a new Command.

        Hooks are looked up on each phase call, not here, so overrides
        installed after the command was built still apply.
        """

        def phase(handle: str) -> Callable[[Context, Done], Any]:
            def call(context: Context, done: Done) -> Any:
                return getattr(self, handle)(*hook_args, context, done)

            return call

        initialization, rules, execution = names.hooks
        return Command(
            phase(initialization),
            phase(rules),
            phase(execution),
            op=names.name,
            args=hook_args if args is None else args,
            on_complete=self._command_completed,
        )

    def _command_completed(self, result: CommandResult) -> None:
        """Dispatch ``post_command`` to plugins. No-op without a plugin manager.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._plugins is not None:
            self._plugins.notify_command(type(self).__name__, result)


BusinessService._commands = {
    op.value: CommandDefinition(op.names, builtin=True) for op in BuiltinOperation
}


@dataclass(frozen=True)
class ServiceBuilder:
    """Result of :meth:`BusinessService.extend`; chains command declarations."""

    service: type[BusinessService]

    def create_command(
        self,
        name: str,
        options: Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> ServiceBuilder:
        """Declare *name* on :attr:`service` and return this builder."""
        create_command(name, self.service, options, **overrides)
        return self


# ---------------------------------------------------------------------------
# Dynamic declaration
# ---------------------------------------------------------------------------


def create_command(
    name: str,
    service_type: type[BusinessService] | None = None,
    options: Mapping[str, Any] | None = None,
    **overrides: Any,
) -> type[BusinessService]:
    """Declare a three-phase operation called *name* on *service_type*.

    Installs the initialization, rules and execution hooks (supplied ones
    or the defaults), the params tuple, and a public method *name*. Calling
    that method binds its arguments to the instance fields named by
    ``params`` and returns a new :class:`Command`. Hooks are methods with
    the signature ``hook(self, context, done)``.

    Re-declaring the same *name* replaces the previous declaration.

    Raises:
        ConfigurationError: *name* or *service_type* is missing or invalid,
            an option key is unknown, ``params`` is malformed, or a
            derived handle would replace an attribute of the service type
            itself (see :data:`ENGINE_ATTRIBUTES`). Nothing is installed
            when validation fails.
    """
    names = CommandNames.for_operation(name)
    if service_type is None:
        msg = "A service type must be supplied"
        raise ConfigurationError(msg)
    if not (isinstance(service_type, type) and issubclass(service_type, BusinessService)):
        msg = f"{service_type!r} is not a BusinessService type"
        raise ConfigurationError(msg)
    _check_engine_clash(names)

    merged = {**(options or {}), **overrides}
    unknown = set(merged) - COMMAND_OPTIONS
    if unknown:
        msg = f"Unknown option(s) for {names.name}: {', '.join(sorted(unknown))}"
        raise ConfigurationError(msg)

    raw_params = merged.get("params") or ()
    if isinstance(raw_params, str):
        msg = f"params for {names.name} must be a sequence of field names, not a string"
        raise ConfigurationError(msg)
    params = tuple(raw_params)
    _validate_fields(
        params, kind="Param", reserved=(names.name, *names.derived, *ENGINE_ATTRIBUTES)
    )

    supplied = (
        merged.get("on_initialization"),
        merged.get("get_rules"),
        merged.get("on_validation_success"),
    )
    for handle, hook in zip(names.hooks, supplied, strict=True):
        if hook is not None and not callable(hook):
            msg = f"Hook {handle} for {names.name} must be callable"
            raise ConfigurationError(msg)

    for handle, hook, default in zip(names.hooks, supplied, DEFAULT_HOOKS, strict=True):
        setattr(service_type, handle, hook or default)

    setattr(service_type, names.params, params)
    setattr(service_type, names.name, _public_method(names, params))
    service_type._commands[names.name] = CommandDefinition(names, params)
    logger.debug("Declared %s on %s", names.name, service_type.__name__)
    return service_type


def _check_engine_clash(names: CommandNames) -> None:
    clashes = [h for h in (names.name, *names.derived) if h in ENGINE_ATTRIBUTES]
    if names.name == "data_proxy" or (names.name.startswith("__") and names.name.endswith("__")):
        clashes.insert(0, names.name)
    if clashes:
        msg = f"Command {names.name!r} would replace service attribute(s): {', '.join(clashes)}"
        raise ConfigurationError(msg)


def _signature(params: Iterable[str]) -> inspect.Signature:
    return inspect.Signature(
        [inspect.Parameter(p, inspect.Parameter.POSITIONAL_OR_KEYWORD) for p in params]
    )


def _public_method(names: CommandNames, params: tuple[str, ...]) -> Callable[..., Command]:
    """Build the public ``names.name`` method for a declared command."""

    def command(self: BusinessService, *args: Any, **kwargs: Any) -> Command:
        fields: tuple[str, ...] = getattr(self, names.params)
        try:
            bound = _signature(fields).bind(*args, **kwargs)
        except TypeError as exc:
            msg = f"{names.name}() {exc}"
            raise TypeError(msg) from None
        for field, value in bound.arguments.items():
            setattr(self, field, value)
        return self._pipeline(names, args=tuple(bound.arguments.values()))

    command.__name__ = names.name
    command.__qualname__ = names.name
    command.__doc__ = f"Build a {names.name} command."
    command.__signature__ = _signature(("self", *params))  # type: ignore[attr-defined]
    return command


def _validate_fields(
    fields: tuple[str, ...],
    *,
    kind: str,
    reserved: tuple[str, ...] = (),
) -> None:
    seen: set[str] = set()
    for field in fields:
        if not is_identifier(field):
            msg = f"{kind} {field!r} is not a valid identifier"
            raise ConfigurationError(msg)
        if field in seen:
            msg = f"{kind} {field!r} is declared more than once"
            raise ConfigurationError(msg)
        if field in reserved:
            msg = f"{kind} {field!r} is reserved by the service type"
            raise ConfigurationError(msg)
        seen.add(field)
