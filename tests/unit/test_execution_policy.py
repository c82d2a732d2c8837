"""Unit tests for the allowlist policy."""
import dataclasses

import pytest

from shellgate.base.execution_policy import AllowlistPolicy, base_command
from shellgate.errors import ErrorCode, GatewayError


class TestAllowlistCheck:
    """Exact first-token matching against the configured commands."""

    @pytest.fixture
    def policy(self):
        return AllowlistPolicy(allow_all=False, commands=("ls", "echo", "cat"))

    @pytest.mark.parametrize("command,allowed", [
        ("ls", True),
        ("ls -la", True),
        ("echo hello", True),
        ("cat file.txt", True),
        ("  cat   file.txt  ", True),
        ("rm file.txt", False),
        ("sudo ls", False),
        ("", False),
        ("   ", False),
    ])
    def test_first_token_decides(self, policy, command, allowed):
        assert policy.check(command) is allowed

    def test_no_path_normalization(self, policy):
        """/usr/bin/ls is a different base command than ls."""
        assert policy.check("/usr/bin/ls -la") is False

    def test_case_sensitive(self, policy):
        assert policy.check("LS") is False

    def test_only_first_token_is_inspected(self, policy):
        # Shell operators after the base command are not analysed.
        assert policy.check("echo hi; rm -rf /tmp/x") is True

    def test_empty_allowlist_permits_nothing(self):
        policy = AllowlistPolicy(allow_all=False, commands=())
        assert policy.check("ls") is False
        assert policy.check("echo hi") is False


class TestAllowAll:

    def test_any_tokenized_command_allowed(self):
        policy = AllowlistPolicy(allow_all=True)
        for command in ["ls", "rm -rf /tmp/x", "sudo ls", "/usr/bin/anything --flag"]:
            assert policy.check(command) is True

    def test_empty_command_still_refused(self):
        policy = AllowlistPolicy(allow_all=True)
        assert policy.check("") is False
        assert policy.check(" \t\n") is False


class TestParse:

    def test_star_means_allow_all(self):
        policy = AllowlistPolicy.parse("*")
        assert policy.allow_all is True
        assert policy.commands == ()

    def test_star_with_whitespace(self):
        assert AllowlistPolicy.parse("  * ").allow_all is True

    def test_comma_list_trimmed_in_order(self):
        policy = AllowlistPolicy.parse(" ls, cat ,echo,find ")
        assert policy.allow_all is False
        assert policy.commands == ("ls", "cat", "echo", "find")

    def test_empty_and_duplicate_entries_dropped(self):
        policy = AllowlistPolicy.parse("ls,,cat, ,ls")
        assert policy.commands == ("ls", "cat")

    def test_only_commas_yields_empty_policy(self):
        policy = AllowlistPolicy.parse(",,")
        assert policy.allow_all is False
        assert policy.commands == ()

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_value_is_config_error(self, value):
        with pytest.raises(GatewayError) as exc_info:
            AllowlistPolicy.parse(value)
        assert exc_info.value.code == ErrorCode.CONFIG_MISSING_REQUIRED

    def test_policy_is_immutable(self):
        policy = AllowlistPolicy.parse("ls")
        with pytest.raises(dataclasses.FrozenInstanceError):
            policy.allow_all = True


def test_base_command():
    assert base_command("ls -la") == "ls"
    assert base_command("  echo   hi") == "echo"
    assert base_command("") is None
    assert base_command("   ") is None
