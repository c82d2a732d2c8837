"""Structured error taxonomy for the command gateway."""
#
# PURPOSE:
# Every failure the gateway reports to a caller carries a searchable error
# code, a human-readable message and optional details. Transports render the
# same object either as a tool error result or as an HTTP JSON body.
#
# ERROR CODE FORMAT:
# - CONFIG_XXX: Startup configuration errors (fatal)
# - REQ_XXX: Malformed requests, unknown tools or protocol methods
# - POLICY_XXX: Allowlist rejections
# - SYSTEM_XXX: Anything unexpected
#
# Execution failures (non-zero exit, timeout, unsupported shell) are NOT
# errors here: they come back as ordinary execution records.
#
# USAGE:
#   from shellgate.errors import GatewayError, ErrorCode
#
#   raise GatewayError(
#       ErrorCode.POLICY_COMMAND_NOT_ALLOWED,
#       "Command 'rm' is not in the allowed list.",
#       details={"base_command": "rm"}
#   )
#
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    # Config Errors
    CONFIG_INVALID = "CONFIG_001"
    CONFIG_MISSING_REQUIRED = "CONFIG_002"

    # Request Errors
    REQUEST_MALFORMED = "REQ_001"
    REQUEST_UNKNOWN_TOOL = "REQ_002"
    REQUEST_UNKNOWN_METHOD = "REQ_003"

    # Policy Errors
    POLICY_COMMAND_NOT_ALLOWED = "POLICY_001"

    # System Errors
    SYSTEM_INTERNAL_ERROR = "SYSTEM_001"


class GatewayError(Exception):
    """
    Base exception class for the gateway with structured error information.

    Attributes:
        code: ErrorCode enum value (e.g., "POLICY_001")
        message: Human-readable error message
        details: Optional dictionary with additional context
        http_status: Suggested HTTP status code for API responses
    """

    HTTP_STATUS_MAP: Dict[ErrorCode, int] = {
        ErrorCode.CONFIG_INVALID: 500,
        ErrorCode.CONFIG_MISSING_REQUIRED: 500,

        ErrorCode.REQUEST_MALFORMED: 400,     # Bad Request
        ErrorCode.REQUEST_UNKNOWN_TOOL: 404,  # Not Found
        ErrorCode.REQUEST_UNKNOWN_METHOD: 404,

        ErrorCode.POLICY_COMMAND_NOT_ALLOWED: 403,  # Forbidden

        ErrorCode.SYSTEM_INTERNAL_ERROR: 500,
    }

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        http_status: Optional[int] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.http_status = http_status or self.HTTP_STATUS_MAP.get(code, 500)

        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "http_status": self.http_status
        }


# ============================================================================
# Convenience Functions
# ============================================================================

def handle_error(error: Exception, context: Optional[str] = None) -> GatewayError:
    """
    Convert a generic exception to a GatewayError.

    Args:
        error: The original exception
        context: Optional context string (e.g., "while handling stdio request")

    Returns:
        GatewayError with appropriate code and message
    """
    if isinstance(error, GatewayError):
        return error

    error_type = type(error).__name__

    if isinstance(error, (ValueError, TypeError, KeyError)):
        code = ErrorCode.REQUEST_MALFORMED
    else:
        code = ErrorCode.SYSTEM_INTERNAL_ERROR

    message = str(error)
    if context:
        message = f"{context}: {message}"

    return GatewayError(
        code=code,
        message=message,
        details={
            "original_type": error_type,
            "original_message": str(error)
        }
    )


__all__ = ["ErrorCode", "GatewayError", "handle_error"]
