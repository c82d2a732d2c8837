"""
shellgate/gateway.py
Orchestrates one request: allowlist check, execution, history, response text.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from shellgate.base.config import GatewayConfig
from shellgate.base.execution_policy import AllowlistPolicy, base_command
from shellgate.data.history import HistoryLog
from shellgate.engine.executor import ExecutionEngine, ExecutionRecord
from shellgate.errors import ErrorCode, GatewayError

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 10


@dataclass(frozen=True)
class GatewayResult:
    """
    Outcome of a tool call.

    is_error is reserved for requests that were refused (malformed input or
    policy rejection). A command that ran and failed is a normal result whose
    record carries the non-zero exit code.
    """
    text: str
    is_error: bool = False
    record: Optional[ExecutionRecord] = None
    error: Optional[GatewayError] = None

    @classmethod
    def from_error(cls, error: GatewayError) -> "GatewayResult":
        return cls(text=f"Error: {error.message}", is_error=True, error=error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }


class CommandGateway:
    """Policy -> engine -> history, plus the two listing operations."""

    def __init__(
        self,
        policy: AllowlistPolicy,
        engine: ExecutionEngine,
        history: HistoryLog,
        default_list_limit: int = DEFAULT_LIST_LIMIT,
    ):
        self.policy = policy
        self.engine = engine
        self.history = history
        self.default_list_limit = default_list_limit

    @classmethod
    def from_config(cls, config: GatewayConfig) -> "CommandGateway":
        """
        Build the policy, engine and history from a config.

        Raises:
            GatewayError: when the allowed-commands setting is missing or the
                config holds invalid values.
        """
        config.validate()
        return cls(
            policy=AllowlistPolicy.parse(config.allowed_commands),
            engine=ExecutionEngine(config.execution),
            history=HistoryLog(config.history.max_entries),
            default_list_limit=config.history.default_list_limit,
        )

    async def execute(self, command: Any, shell: Any = None) -> GatewayResult:
        try:
            command, shell = self._validate_request(command, shell)
            self._authorize(command)
        except GatewayError as exc:
            return GatewayResult.from_error(exc)

        record = await self.engine.run(command, shell)
        self.history.append(record)
        return GatewayResult(text=format_execution(record), record=record)

    def list_recent(self, limit: Any = None) -> GatewayResult:
        if limit is None:
            limit = self.default_list_limit
        elif isinstance(limit, bool) or not isinstance(limit, (int, float)) or not math.isfinite(limit):
            return GatewayResult.from_error(GatewayError(
                ErrorCode.REQUEST_MALFORMED,
                "'limit' must be a finite number",
                details={"limit": repr(limit)},
            ))

        records, total = self.history.snapshot(int(limit))
        if not records:
            return GatewayResult(text="No commands have been executed yet.")
        return GatewayResult(text=format_history(records, total=total))

    def list_allowed(self) -> GatewayResult:
        if self.policy.allow_all:
            return GatewayResult(
                text="All commands are allowed ('*' mode).\n\n"
                     "Warning: This server is configured to execute any shell command. "
                     "This poses a security risk."
            )
        if not self.policy.commands:
            return GatewayResult(
                text="No commands are currently allowed. "
                     "Configure the server with the '--allowed-commands' flag."
            )
        lines = [f"Allowed commands ({len(self.policy.commands)}):", ""]
        lines.extend(f"{i}. {name}" for i, name in enumerate(self.policy.commands, start=1))
        return GatewayResult(text="\n".join(lines) + "\n")

    def _validate_request(self, command: Any, shell: Any):
        if not isinstance(command, str) or not command.strip():
            raise GatewayError(
                ErrorCode.REQUEST_MALFORMED,
                "'command' must be a non-empty string",
                details={"command_type": type(command).__name__},
            )
        if shell is not None and not isinstance(shell, str):
            raise GatewayError(
                ErrorCode.REQUEST_MALFORMED,
                "'shell' must be a string",
                details={"shell_type": type(shell).__name__},
            )
        return command, shell or None

    def _authorize(self, command: str) -> None:
        if self.policy.check(command):
            return
        base = base_command(command)
        logger.warning(f"[gateway] Rejected command with base '{base}'")
        raise GatewayError(
            ErrorCode.POLICY_COMMAND_NOT_ALLOWED,
            f"Command '{base}' is not in the allowed list. "
            "Run 'list_allowed_commands' to see what commands are permitted.",
            details={"base_command": base},
        )


def format_execution(record: ExecutionRecord) -> str:
    if record.succeeded:
        status = "completed successfully"
    else:
        status = f"failed with exit code {record.exit_code}"
    return f"$ {record.command}\n\n{record.output}\n\nCommand {status} in {record.duration_ms} ms"


def format_history(records: List[ExecutionRecord], total: int) -> str:
    parts = [f"Recent commands (showing {len(records)} of {total} total):\n\n"]
    for i, rec in enumerate(records, start=1):
        status = "Success" if rec.succeeded else f"Failed (exit code {rec.exit_code})"
        parts.append(
            f"{i}. [{rec.started_at.isoformat(timespec='seconds')}] $ {rec.command}\n"
            f"   Shell: {rec.shell}, Duration: {rec.duration_ms} ms, Status: {status}\n\n"
        )
    return "".join(parts)
