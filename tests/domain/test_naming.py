"""Tests for the command naming convention."""

from __future__ import annotations

import pytest

from servicepipe.domain.exceptions import ConfigurationError
from servicepipe.domain.naming import BuiltinOperation, CommandNames, to_snake


class TestToSnake:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("insertCommand", "insert_command"),
            ("getByIdCommand", "get_by_id_command"),
            ("insert_command", "insert_command"),
            ("syncHTTPCommand", "sync_http_command"),
            ("test1Command", "test1_command"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        assert to_snake(raw) == expected


class TestCommandNames:
    def test_insert_command_handles(self) -> None:
        names = CommandNames.for_operation("insert_command")
        assert names.name == "insert_command"
        assert names.initialization == "_on_insert_command_initialization"
        assert names.rules == "_get_rules_for_insert"
        assert names.execution == "_insert"
        assert names.params == "_insert_command_params"

    def test_camel_case_keeps_public_name(self) -> None:
        names = CommandNames.for_operation("testCommand")
        assert names.name == "testCommand"
        assert names.initialization == "_on_test_command_initialization"
        assert names.rules == "_get_rules_for_test"
        assert names.execution == "_test"
        assert names.params == "_test_command_params"

    def test_name_without_command_suffix(self) -> None:
        names = CommandNames.for_operation("archive")
        assert names.initialization == "_on_archive_command_initialization"
        assert names.execution == "_archive"

    def test_deterministic(self) -> None:
        assert CommandNames.for_operation("publish_command") == CommandNames.for_operation(
            "publish_command"
        )

    def test_four_distinct_derived_handles(self) -> None:
        names = CommandNames.for_operation("publish_command")
        assert len(set(names.derived)) == 4
        assert names.name not in names.derived

    def test_hooks_in_phase_order(self) -> None:
        names = CommandNames.for_operation("publish_command")
        assert names.hooks == ("_on_publish_command_initialization", "_get_rules_for_publish", "_publish")

    @pytest.mark.parametrize("bad", [None, "", "not valid", "1st_command", "class", "_", "__"])
    def test_invalid_names_rejected(self, bad: object) -> None:
        with pytest.raises(ConfigurationError):
            CommandNames.for_operation(bad)

    def test_frozen(self) -> None:
        names = CommandNames.for_operation("publish_command")
        with pytest.raises(Exception):
            names.execution = "_other"  # type: ignore[misc]


class TestBuiltinOperation:
    def test_five_builtins(self) -> None:
        assert [op.value for op in BuiltinOperation] == [
            "get_all_command",
            "get_by_id_command",
            "insert_command",
            "update_command",
            "delete_command",
        ]

    @pytest.mark.parametrize(
        ("op", "proxy_method"),
        [
            (BuiltinOperation.GET_ALL, "get_all"),
            (BuiltinOperation.GET_BY_ID, "get_by_id"),
            (BuiltinOperation.INSERT, "insert"),
            (BuiltinOperation.UPDATE, "update"),
            (BuiltinOperation.DELETE, "delete"),
        ],
    )
    def test_execution_hook_matches_proxy_method(self, op: BuiltinOperation, proxy_method: str) -> None:
        assert op.proxy_method == proxy_method
        assert op.names.execution == f"_{proxy_method}"

    def test_delete_naming_is_uniform(self) -> None:
        names = BuiltinOperation.DELETE.names
        assert names.initialization == "_on_delete_command_initialization"
        assert names.rules == "_get_rules_for_delete"
        assert names.execution == "_delete"
