"""
shellgate/base/execution_policy.py
The allowlist that decides whether a command may run at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from shellgate.errors import ErrorCode, GatewayError

ALLOW_ALL_SENTINEL = "*"


def base_command(command: str) -> Optional[str]:
    """First whitespace-delimited token of a command string, or None."""
    tokens = command.split()
    if not tokens:
        return None
    return tokens[0]


@dataclass(frozen=True)
class AllowlistPolicy:
    """
    Authoritative allowlist, built once at startup.

    Matching is exact on the base command: no globbing, no regex and no path
    normalization, so "/usr/bin/ls" does not match an entry "ls".
    """
    allow_all: bool = False
    commands: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, value: Optional[str]) -> "AllowlistPolicy":
        """
        Parse an allowed-commands value.

        "*" allows everything. Otherwise the value is a comma-separated list;
        entries are trimmed, and empty or repeated entries are dropped.

        Raises:
            GatewayError: CONFIG_MISSING_REQUIRED when the value is absent or blank.
        """
        if value is None or not value.strip():
            raise GatewayError(
                ErrorCode.CONFIG_MISSING_REQUIRED,
                "The allowed-commands setting is required",
            )

        if value.strip() == ALLOW_ALL_SENTINEL:
            return cls(allow_all=True)

        commands = []
        for entry in value.split(","):
            name = entry.strip()
            if name and name not in commands:
                commands.append(name)
        return cls(allow_all=False, commands=tuple(commands))

    def check(self, command: str) -> bool:
        base = base_command(command)
        # Empty input is refused in both modes.
        if base is None:
            return False
        if self.allow_all:
            return True
        return base in self.commands

    def describe(self) -> str:
        if self.allow_all:
            return "all commands allowed ('*' mode)"
        return f"{len(self.commands)} allowed commands"
