"""MCP transport module - JSON-RPC envelope handling and the HTTP route."""

from .exceptions import (
    ProtocolError,
    ParseError,
    InvalidRequestError,
    MethodNotFoundError,
    InvalidParamsError,
    PayloadTooLargeError,
)
from .schemas import (
    MCPErrorDetail,
    MCPInitializeParams,
    MCPJSONRPCRequest,
    MCPJSONRPCResponse,
    MCPToolCallParams,
    MCPToolListResult,
)
from .service import (
    SUPPORTED_PROTOCOL_VERSIONS,
    DispatchOutcome,
    ProtocolDispatcher,
    handle_initialize,
    handle_tools_call,
    handle_tools_list,
)


__all__ = [
    "ProtocolError",
    "ParseError",
    "InvalidRequestError",
    "MethodNotFoundError",
    "InvalidParamsError",
    "PayloadTooLargeError",
    "MCPErrorDetail",
    "MCPInitializeParams",
    "MCPJSONRPCRequest",
    "MCPJSONRPCResponse",
    "MCPToolCallParams",
    "MCPToolListResult",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "DispatchOutcome",
    "ProtocolDispatcher",
    "handle_initialize",
    "handle_tools_call",
    "handle_tools_list",
]
