"""Pydantic schemas for tool invocation results and JSON-RPC error codes."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class MCPContent(BaseModel):
    """Content block in a tool response.

    Attributes:
        type: Block kind ("text", "image", "resource", ...).
        text: Text payload for text blocks.
        data: Base64 payload for binary blocks.
        mimeType: MIME type of ``data``.
    """

    type: Literal["text", "image", "audio", "resource"] = Field(..., description="Block kind")
    text: str | None = Field(default=None, description="Text payload")
    data: str | None = Field(default=None, description="Base64 payload")
    mimeType: str | None = Field(default=None, description="MIME type of data")

    @classmethod
    def text_block(cls, text: str) -> dict[str, Any]:
        """Build a wire-ready text block."""
        return cls(type="text", text=text).model_dump(exclude_none=True)


class MCPToolCallResult(BaseModel):
    """Result of a single tool call.

    Content blocks are kept as the handler produced them; extra top-level
    keys (``structuredContent``, ``_meta``) pass through untouched.

    Attributes:
        content: Ordered list of content blocks.
        isError: Whether the tool itself failed.
    """

    content: list[dict[str, Any]] = Field(default_factory=list, description="Content blocks")
    isError: bool = Field(default=False, description="Tool execution failed")

    model_config = ConfigDict(extra="allow")

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> "MCPToolCallResult":
        return cls(content=[MCPContent.text_block(text)], isError=is_error)


# Standard JSON-RPC error codes
class MCPErrorCodes:
    """Standard MCP/JSON-RPC error codes."""

    # JSON-RPC standard errors
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Unknown tools share the "method not found" code
    TOOL_NOT_FOUND = -32601

    # Custom MCP Hub errors (-32000 to -32099)
    INTEGRATION_NOT_FOUND = -32001
    AUTHENTICATION_FAILED = -32002
    INTEGRATION_UNAVAILABLE = -32003
    METHOD_NOT_ALLOWED = -32004
    RATE_LIMITED = -32005
