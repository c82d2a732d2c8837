"""Integration tests for the MCP (JSON-RPC 2.0) stdio transport."""
import io
import json
from unittest.mock import patch

import pytest

from shellgate.server.stdio import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    handle_line,
    serve_stdio,
)


def _request(rid, method, params=None):
    message = {"jsonrpc": "2.0", "id": rid, "method": method}
    if params is not None:
        message["params"] = params
    return json.dumps(message)


def _call(rid, name, arguments=None):
    return _request(rid, "tools/call", {"name": name, "arguments": arguments or {}})


def _text(response):
    return response["result"]["content"][0]["text"]


@pytest.mark.asyncio
async def test_handshake_list_and_call(gateway):
    lines = [
        _request(1, "initialize", {
            "protocolVersion": "2024-11-05",
            "capabilities": {},
            "clientInfo": {"name": "test-client", "version": "1.0"},
        }),
        json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
        _request(2, "tools/list"),
        _call(3, "execute_command", {"command": "echo from-stdio"}),
    ]
    reader = io.StringIO("\n".join(lines) + "\n\n")
    writer = io.StringIO()

    await serve_stdio(gateway, reader=reader, writer=writer)

    responses = {r["id"]: r for r in map(json.loads, writer.getvalue().splitlines())}
    # The notification gets no response.
    assert set(responses) == {1, 2, 3}
    assert all(r["jsonrpc"] == "2.0" for r in responses.values())

    init = responses[1]["result"]
    assert init["protocolVersion"] == "2024-11-05"
    assert init["serverInfo"]["name"] == "shellgate"
    assert "tools" in init["capabilities"]

    tools = responses[2]["result"]["tools"]
    assert [t["name"] for t in tools] == ["execute_command", "list_recent_commands", "list_allowed_commands"]
    assert tools[0]["inputSchema"]["required"] == ["command"]

    assert responses[3]["result"]["isError"] is False
    assert "from-stdio" in _text(responses[3])
    assert len(gateway.history) == 1


@pytest.mark.asyncio
async def test_unknown_protocol_version_gets_latest(gateway):
    response = await handle_line(gateway, _request(1, "initialize", {"protocolVersion": "1999-01-01"}))
    assert response["result"]["protocolVersion"] == LATEST_PROTOCOL_VERSION


@pytest.mark.asyncio
async def test_ping(gateway):
    assert await handle_line(gateway, _request("p", "ping")) == {"jsonrpc": "2.0", "id": "p", "result": {}}


@pytest.mark.asyncio
async def test_invalid_json(gateway):
    response = await handle_line(gateway, "{not json")
    assert response["id"] is None
    assert response["error"]["code"] == PARSE_ERROR


@pytest.mark.asyncio
@pytest.mark.parametrize("line", [
    '[1, 2]',
    '"tools/list"',
    '{"id": 1, "method": "tools/list"}',
    '{"jsonrpc": "2.0", "id": 1, "method": 7}',
])
async def test_invalid_request(gateway, line):
    response = await handle_line(gateway, line)
    assert response["error"]["code"] == INVALID_REQUEST


@pytest.mark.asyncio
async def test_unknown_method(gateway):
    response = await handle_line(gateway, _request(4, "resources/list"))
    assert response["id"] == 4
    assert response["error"]["code"] == METHOD_NOT_FOUND
    assert response["error"]["data"]["code"] == "REQ_003"


@pytest.mark.asyncio
async def test_unknown_notification_is_silent(gateway):
    line = json.dumps({"jsonrpc": "2.0", "method": "no/such/thing"})
    assert await handle_line(gateway, line) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [
    [1],
    {"name": 5},
    {"name": "execute_command", "arguments": [1]},
])
async def test_bad_call_params(gateway, params):
    response = await handle_line(gateway, _request("a", "tools/call", params))
    assert response["id"] == "a"
    assert response["error"]["code"] == INVALID_PARAMS


@pytest.mark.asyncio
async def test_unknown_tool_is_tool_error(gateway):
    response = await handle_line(gateway, _call(3, "format_disk"))
    assert response["result"]["isError"] is True
    assert "Unknown tool 'format_disk'" in _text(response)


@pytest.mark.asyncio
async def test_untyped_command_is_malformed(gateway):
    response = await handle_line(gateway, _call(4, "execute_command", {"command": 5}))
    assert response["result"]["isError"] is True
    assert "'command' must be a non-empty string" in _text(response)
    assert len(gateway.history) == 0


@pytest.mark.asyncio
async def test_list_recent_with_limit(gateway, make_record):
    for i in range(4):
        gateway.history.append(make_record(f"echo {i}"))
    response = await handle_line(gateway, _call(5, "list_recent_commands", {"limit": 2.7}))
    assert "showing 2 of 4 total" in _text(response)


@pytest.mark.asyncio
@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity", "1e400"])
async def test_non_finite_limit_still_gets_a_response(gateway, make_record, literal):
    gateway.history.append(make_record("echo a"))
    line = ('{"jsonrpc": "2.0", "id": 9, "method": "tools/call", '
            '"params": {"name": "list_recent_commands", "arguments": {"limit": %s}}}' % literal)
    writer = io.StringIO()

    await serve_stdio(gateway, reader=io.StringIO(line + "\n"), writer=writer)

    response = json.loads(writer.getvalue())
    assert response["id"] == 9
    assert response["result"]["isError"] is True
    assert "finite number" in _text(response)


@pytest.mark.asyncio
async def test_unexpected_tool_failure_becomes_error_result(gateway):
    with patch.object(gateway, "list_allowed", side_effect=RuntimeError("boom")):
        writer = io.StringIO()
        await serve_stdio(gateway, reader=io.StringIO(_call(6, "list_allowed_commands") + "\n"), writer=writer)

    response = json.loads(writer.getvalue())
    assert response["id"] == 6
    assert response["result"]["isError"] is True
    assert _text(response) == "Error: Tool 'list_allowed_commands' failed: boom"
