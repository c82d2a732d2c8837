"""Stdio transport: MCP over JSON-RPC 2.0, one message per line."""
#
# PROTOCOL:
#   stdin : {"jsonrpc": "2.0", "id": 1, "method": "tools/call",
#            "params": {"name": "execute_command", "arguments": {"command": "ls"}}}
#   stdout: {"jsonrpc": "2.0", "id": 1, "result": {"content": [...], "isError": false}}
#
# Methods: initialize, ping, tools/list, tools/call. Notifications (no "id")
# never get a response. Requests are handled concurrently; responses are
# written whole, one per line, in completion order. stdout carries nothing but
# responses, so logging must stay on stderr.
#

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional, Set, TextIO

from shellgate import __version__
from shellgate.errors import ErrorCode, GatewayError
from shellgate.gateway import CommandGateway
from shellgate.server.catalog import TOOLS, invoke_tool

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
SERVER_NAME = "shellgate"

SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[-1]

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

_RPC_ERROR_CODES = {
    ErrorCode.REQUEST_MALFORMED: INVALID_PARAMS,
    ErrorCode.REQUEST_UNKNOWN_METHOD: METHOD_NOT_FOUND,
}


async def handle_line(gateway: CommandGateway, line: str) -> Optional[Dict[str, Any]]:
    """
    Turn one JSON-RPC message into its response.

    Returns None for notifications. Bad input becomes a JSON-RPC error
    response; it is never raised.
    """
    try:
        message = json.loads(line)
    except json.JSONDecodeError as exc:
        return _error_response(None, PARSE_ERROR, f"Parse error: {exc.msg}")

    if not isinstance(message, dict):
        return _error_response(None, INVALID_REQUEST, "Invalid request: expected a JSON object")

    rid = message.get("id")
    is_notification = "id" not in message
    method = message.get("method")
    if message.get("jsonrpc") != JSONRPC_VERSION or not isinstance(method, str):
        return _error_response(rid, INVALID_REQUEST, "Invalid request: 'jsonrpc' must be \"2.0\" and 'method' a string")

    params = message.get("params")
    try:
        if params is None:
            params = {}
        elif not isinstance(params, dict):
            raise GatewayError(ErrorCode.REQUEST_MALFORMED, "'params' must be an object")
        result = await _dispatch(gateway, method, params)
    except GatewayError as exc:
        logger.warning(f"[stdio] {method}: {exc}")
        if is_notification:
            return None
        return _error_response(rid, _RPC_ERROR_CODES.get(exc.code, INTERNAL_ERROR), exc.message, exc.to_dict())

    if is_notification:
        return None
    return {"jsonrpc": JSONRPC_VERSION, "id": rid, "result": result}


async def _dispatch(gateway: CommandGateway, method: str, params: Dict[str, Any]) -> Any:
    if method == "initialize":
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        client = params.get("clientInfo") or {}
        logger.info(f"[stdio] initialize from {client.get('name', 'unknown client')} (protocol {version})")
        return {
            "protocolVersion": version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    if method == "ping":
        return {}

    if method == "tools/list":
        return {"tools": TOOLS}

    if method == "tools/call":
        name = params.get("name")
        if not isinstance(name, str):
            raise GatewayError(ErrorCode.REQUEST_MALFORMED, "'name' must be a string")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise GatewayError(ErrorCode.REQUEST_MALFORMED, "'arguments' must be an object")
        result = await invoke_tool(gateway, name, arguments)
        return result.to_dict()

    if method.startswith("notifications/"):
        return None

    raise GatewayError(
        ErrorCode.REQUEST_UNKNOWN_METHOD,
        f"Method not found: {method}",
        details={"method": method},
    )


def _error_response(
    rid: Any,
    code: int,
    message: str,
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": rid, "error": error}


async def serve_stdio(
    gateway: CommandGateway,
    reader: Optional[TextIO] = None,
    writer: Optional[TextIO] = None,
) -> None:
    """Serve requests until EOF on the reader, then wait for in-flight ones."""
    reader = reader or sys.stdin
    writer = writer or sys.stdout
    loop = asyncio.get_running_loop()
    write_lock = asyncio.Lock()
    pending: Set[asyncio.Task] = set()

    async def respond(line: str) -> None:
        payload = await handle_line(gateway, line)
        if payload is None:
            return
        async with write_lock:
            writer.write(json.dumps(payload) + "\n")
            writer.flush()

    logger.info("[stdio] Serving MCP requests on stdin/stdout")
    try:
        while True:
            line = await loop.run_in_executor(None, reader.readline)
            if not line:
                break
            if not line.strip():
                continue
            task = asyncio.create_task(respond(line))
            pending.add(task)
            task.add_done_callback(pending.discard)

        if pending:
            await asyncio.gather(*pending)
    finally:
        # Cancelling in-flight requests makes the engine kill their processes.
        for task in list(pending):
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("[stdio] Input closed; transport stopped")
