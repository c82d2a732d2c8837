"""Unit tests for the structured error taxonomy."""

from shellgate.errors import ErrorCode, GatewayError, handle_error


def test_http_status_mapping():
    assert GatewayError(ErrorCode.POLICY_COMMAND_NOT_ALLOWED, "no").http_status == 403
    assert GatewayError(ErrorCode.REQUEST_MALFORMED, "bad").http_status == 400
    assert GatewayError(ErrorCode.REQUEST_UNKNOWN_TOOL, "who").http_status == 404
    assert GatewayError(ErrorCode.CONFIG_MISSING_REQUIRED, "cfg").http_status == 500
    assert GatewayError(ErrorCode.REQUEST_MALFORMED, "bad", http_status=422).http_status == 422


def test_message_includes_code():
    err = GatewayError(ErrorCode.POLICY_COMMAND_NOT_ALLOWED, "Command 'rm' is not allowed")
    assert str(err) == "[POLICY_001] Command 'rm' is not allowed"


def test_to_dict():
    err = GatewayError(ErrorCode.REQUEST_MALFORMED, "bad", details={"field": "command"})

    assert err.to_dict() == {
        "code": "REQ_001",
        "message": "bad",
        "details": {"field": "command"},
        "http_status": 400,
    }


def test_handle_error_passthrough():
    err = GatewayError(ErrorCode.REQUEST_MALFORMED, "bad")
    assert handle_error(err) is err


def test_handle_error_wraps_foreign_exceptions():
    wrapped = handle_error(ValueError("nope"), context="while parsing")
    assert wrapped.code == ErrorCode.REQUEST_MALFORMED
    assert wrapped.message == "while parsing: nope"
    assert wrapped.details["original_type"] == "ValueError"

    assert handle_error(RuntimeError("boom")).code == ErrorCode.SYSTEM_INTERNAL_ERROR
