"""CommandResult — the wrapper every command execution reports.

INVARIANT: A command's completion callback receives exactly one
CommandResult. The execution phase's value travels under ``value``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from servicepipe.domain.rules import RuleViolation


class CommandResult(BaseModel):
    """Outcome of one command execution.

    Attributes:
        ok: False when the rules phase reported violations.
        op: Name of the operation (e.g. ``"insert_command"``).
        value: Whatever the execution phase passed to ``done``.
        violations: Broken rules; empty whenever ``ok`` is True.
        meta: Optional metadata (telemetry span tree).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    value: Any = None
    violations: list[RuleViolation] = Field(default_factory=list)
    meta: dict[str, Any] | None = None
