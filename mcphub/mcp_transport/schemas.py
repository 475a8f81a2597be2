"""Pydantic schemas for MCP protocol messages."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


class MCPInitializeParams(BaseModel):
    """Parameters for initialize request."""

    protocolVersion: str | None = Field(default=None, description="MCP protocol version")
    capabilities: dict[str, Any] = Field(default_factory=dict)
    clientInfo: dict[str, Any] = Field(default_factory=dict)


class MCPToolListResult(BaseModel):
    """Result for tools/list."""

    tools: list[dict[str, Any]]


class MCPToolCallParams(BaseModel):
    """Parameters for tools/call."""

    name: StrictStr = Field(..., min_length=1)
    arguments: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")


class MCPJSONRPCRequest(BaseModel):
    """Generic JSON-RPC 2.0 request or notification."""

    jsonrpc: Literal["2.0"]
    id: StrictStr | StrictInt | None = None
    method: StrictStr
    params: dict[str, Any] | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None and self.method.startswith("notifications/")


class MCPErrorDetail(BaseModel):
    """Error details in JSON-RPC format.

    Attributes:
        code: Error code (negative integers for protocol errors).
        message: Human-readable error message.
        data: Optional additional error data.
    """

    code: int = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    data: Any | None = Field(default=None, description="Additional error data")


class MCPJSONRPCResponse(BaseModel):
    """Generic JSON-RPC 2.0 response."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int | None = None
    result: Any | None = None
    error: MCPErrorDetail | None = None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with exactly one of ``result`` or ``error``."""
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.model_dump(exclude_none=True)
        else:
            payload["result"] = self.result if self.result is not None else {}
        return payload
