"""Rule violations reported by the rule-evaluation phase.

An empty rules result means "proceed". Hooks may report plain strings,
mappings, or ``RuleViolation`` instances; they are normalized here so the
rest of the pipeline only ever sees ``RuleViolation``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_VIOLATION_CODE = "RULE_VIOLATION"


class RuleViolation(BaseModel):
    """One broken business rule."""

    model_config = {"frozen": True}

    code: str = DEFAULT_VIOLATION_CODE
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def coerce(cls, entry: Any) -> RuleViolation:
        """Build a violation from a string, mapping, or existing violation."""
        if isinstance(entry, RuleViolation):
            return entry
        if isinstance(entry, str):
            return cls(message=entry)
        if isinstance(entry, Mapping):
            return cls.model_validate(dict(entry))
        msg = f"Cannot interpret {type(entry).__name__} as a rule violation"
        raise TypeError(msg)


def normalize_violations(rules: Any) -> list[RuleViolation]:
    """Normalize a rules result into a list of violations.

    ``None`` and empty sequences both mean "no violations". A single
    string, mapping, or violation counts as one entry.

    Examples:
        >>> normalize_violations(None)
        []
        >>> [v.message for v in normalize_violations("name is required")]
        ['name is required']
    """
    if rules is None:
        return []
    if isinstance(rules, (str, Mapping, RuleViolation)):
        return [RuleViolation.coerce(rules)]
    if not isinstance(rules, Iterable):
        msg = f"Rules result must be a sequence, got {type(rules).__name__}"
        raise TypeError(msg)
    return [RuleViolation.coerce(entry) for entry in rules]
