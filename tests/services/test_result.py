"""Tests for CommandResult."""

import json

import pytest

from servicepipe.domain.rules import RuleViolation
from servicepipe.services.result import CommandResult


class TestCommandResult:
    def test_success_construction(self) -> None:
        result = CommandResult(ok=True, op="insert_command", value={"id": 1})
        assert result.ok is True
        assert result.op == "insert_command"
        assert result.value == {"id": 1}
        assert result.violations == []
        assert result.meta is None

    def test_value_defaults_to_none(self) -> None:
        assert CommandResult(ok=True, op="delete_command").value is None

    def test_value_is_not_copied(self) -> None:
        payload = object()
        assert CommandResult(ok=True, op="get_all_command", value=payload).value is payload

    def test_violation_construction(self) -> None:
        result = CommandResult(
            ok=False,
            op="insert_command",
            violations=[RuleViolation(code="REQUIRED", message="name is required")],
        )
        assert result.ok is False
        assert result.violations[0].code == "REQUIRED"

    def test_json_serialization(self) -> None:
        result = CommandResult(
            ok=False,
            op="test",
            violations=[RuleViolation(message="bad")],
            meta={"telemetry": {"name": "test"}},
        )
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is False
        assert parsed["violations"][0]["message"] == "bad"
        assert parsed["meta"]["telemetry"]["name"] == "test"

    def test_frozen(self) -> None:
        result = CommandResult(ok=True, op="test")
        with pytest.raises(Exception):
            result.ok = False  # type: ignore[misc]
