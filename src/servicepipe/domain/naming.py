"""Hook naming convention for three-phase commands.

Every operation name maps to exactly four derived handles. With
``base`` being the snake_case operation name minus a trailing
``_command``:

- initialization: ``_on_<base>_command_initialization``
- rules:          ``_get_rules_for_<base>``
- execution:      ``_<base>``
- params:         ``_<base>_command_params``

The public method keeps the literal declared name, so ``insertCommand``
and ``insert_command`` derive the same handles.

Declared commands follow the built-in pattern exactly rather than
echoing the declared spelling: ``test_command`` (or ``testCommand``) gets
``_get_rules_for_test``, never ``_getRulesForTestCommand``. The
``_command`` infix is always present in the initialization and params
handles, so ``welcome`` gets ``_on_welcome_command_initialization`` and
``_welcome_command_params``.
"""

from __future__ import annotations

import keyword
import re
from enum import StrEnum

from pydantic import BaseModel

from servicepipe.domain.exceptions import ConfigurationError

COMMAND_SUFFIX = "_command"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")
_ACRONYM_BOUNDARY = re.compile(r"(?<=[A-Z])([A-Z][a-z])")


def to_snake(name: str) -> str:
    """Normalize a camelCase or snake_case identifier to snake_case.

    Examples:
        >>> to_snake("getByIdCommand")
        'get_by_id_command'
        >>> to_snake("insert_command")
        'insert_command'
        >>> to_snake("syncHTTPCommand")
        'sync_http_command'
    """
    name = _ACRONYM_BOUNDARY.sub(r"_\1", name)
    name = _CAMEL_BOUNDARY.sub(r"_\1", name)
    return name.lower()


def is_identifier(value: object) -> bool:
    """True for strings usable as Python attribute names."""
    return isinstance(value, str) and value.isidentifier() and not keyword.iskeyword(value)


class CommandNames(BaseModel):
    """The public name of an operation plus its four derived handles."""

    model_config = {"frozen": True}

    name: str
    initialization: str
    rules: str
    execution: str
    params: str

    @classmethod
    def for_operation(cls, name: object) -> CommandNames:
        """Derive the handles for *name*.

        Raises:
            ConfigurationError: *name* is empty, not an identifier, or
                reduces to nothing once the ``_command`` suffix is removed.
        """
        if not name:
            msg = "A value for name must be supplied"
            raise ConfigurationError(msg)
        if not is_identifier(name):
            msg = f"Command name {name!r} is not a valid identifier"
            raise ConfigurationError(msg)
        assert isinstance(name, str)

        base = to_snake(name).strip("_").removesuffix(COMMAND_SUFFIX)
        if not base:
            msg = f"Command name {name!r} has no operation part"
            raise ConfigurationError(msg)

        return cls(
            name=name,
            initialization=f"_on_{base}_command_initialization",
            rules=f"_get_rules_for_{base}",
            execution=f"_{base}",
            params=f"_{base}_command_params",
        )

    @property
    def hooks(self) -> tuple[str, str, str]:
        """Handles of the three phase hooks, in execution order."""
        return (self.initialization, self.rules, self.execution)

    @property
    def derived(self) -> tuple[str, str, str, str]:
        """All four derived handles."""
        return (self.initialization, self.rules, self.execution, self.params)


class BuiltinOperation(StrEnum):
    """The five operations every BusinessService ships with."""

    GET_ALL = "get_all_command"
    GET_BY_ID = "get_by_id_command"
    INSERT = "insert_command"
    UPDATE = "update_command"
    DELETE = "delete_command"

    @property
    def names(self) -> CommandNames:
        return CommandNames.for_operation(self.value)

    @property
    def proxy_method(self) -> str:
        """Name of the data-access method the default execution hook calls."""
        return self.value.removesuffix(COMMAND_SUFFIX)
