"""Gateway module - Tool invocation, validation and result normalization."""

from .schemas import MCPContent, MCPToolCallResult, MCPErrorCodes
from .exceptions import GatewayError, ToolNotFoundError, ToolArgumentsError
from .invoker import invoke_tool, normalize_result
from .validation import schema_errors, validate_arguments


__all__ = [
    # Schemas
    "MCPContent",
    "MCPToolCallResult",
    "MCPErrorCodes",
    # Exceptions
    "GatewayError",
    "ToolNotFoundError",
    "ToolArgumentsError",
    # Invocation
    "invoke_tool",
    "normalize_result",
    "schema_errors",
    "validate_arguments",
]
