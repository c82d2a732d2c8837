"""
shellgate/server/catalog.py
The three tools the gateway exposes, shared by every transport.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from shellgate.errors import ErrorCode, GatewayError, handle_error
from shellgate.gateway import CommandGateway, GatewayResult

logger = logging.getLogger(__name__)

EXECUTE_COMMAND = "execute_command"
LIST_RECENT_COMMANDS = "list_recent_commands"
LIST_ALLOWED_COMMANDS = "list_allowed_commands"

TOOLS: List[Dict[str, Any]] = [
    {
        "name": EXECUTE_COMMAND,
        "description": "Execute a shell command using bash or zsh.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "command": {"type": "string", "description": "The command to execute"},
                "shell": {"type": "string", "description": "The shell to use (bash or zsh)"},
            },
            "required": ["command"],
        },
    },
    {
        "name": LIST_RECENT_COMMANDS,
        "description": "List recently executed commands.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": {"type": "number", "description": "Maximum number of commands to return"},
            },
        },
    },
    {
        "name": LIST_ALLOWED_COMMANDS,
        "description": "List all commands that are allowed to be executed.",
        "inputSchema": {"type": "object", "properties": {}},
    },
]


async def invoke_tool(
    gateway: CommandGateway,
    name: Any,
    arguments: Mapping[str, Any],
) -> GatewayResult:
    """
    Route a named tool call to the gateway.

    Never raises: unknown tools and unexpected failures inside a tool both
    come back as error results.
    """
    try:
        if name == EXECUTE_COMMAND:
            return await gateway.execute(arguments.get("command"), arguments.get("shell"))
        if name == LIST_RECENT_COMMANDS:
            return gateway.list_recent(arguments.get("limit"))
        if name == LIST_ALLOWED_COMMANDS:
            return gateway.list_allowed()
    except Exception as exc:
        error = handle_error(exc, context=f"Tool '{name}' failed")
        logger.exception(f"[catalog] {error.code.value}: {error.message}")
        return GatewayResult.from_error(error)

    logger.warning(f"[catalog] Unknown tool requested: {name!r}")
    return GatewayResult.from_error(GatewayError(
        ErrorCode.REQUEST_UNKNOWN_TOOL,
        f"Unknown tool '{name}'",
        details={"available": [tool["name"] for tool in TOOLS]},
    ))
