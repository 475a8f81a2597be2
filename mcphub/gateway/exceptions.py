"""Custom exceptions for tool dispatch."""

from typing import Any

from mcphub.auth.exceptions import MCPGatewayError


class GatewayError(MCPGatewayError):
    """Base exception for gateway-specific errors."""
    pass


class ToolNotFoundError(GatewayError):
    """Raised when a tool name is absent from the integration's tool table.

    Attributes:
        tool_name: Name of the tool that was not found.
        integration_name: Integration that was searched.
    """

    def __init__(self, tool_name: str, integration_name: str):
        super().__init__(
            message=f"Tool '{tool_name}' not found on integration '{integration_name}'",
            code="TOOL_NOT_FOUND",
        )
        self.tool_name = tool_name
        self.integration_name = integration_name

    @property
    def data(self) -> dict[str, Any]:
        return {"tool": self.tool_name, "integration": self.integration_name}


class ToolArgumentsError(GatewayError):
    """Raised when tool arguments do not match the declared input schema.

    Attributes:
        tool_name: Tool whose schema rejected the arguments.
        errors: One message per schema violation.
    """

    def __init__(self, tool_name: str, errors: list[str]):
        super().__init__(
            message=f"Invalid arguments for tool '{tool_name}': {'; '.join(errors)}",
            code="INVALID_ARGUMENTS",
        )
        self.tool_name = tool_name
        self.errors = errors

    @property
    def data(self) -> dict[str, Any]:
        return {"tool": self.tool_name, "errors": self.errors}
