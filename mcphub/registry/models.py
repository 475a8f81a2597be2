"""Models for integrations, their tool definitions and registrations."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field


# (arguments, upstream_credential, tenant_id) -> result
ToolHandler = Callable[[dict[str, Any], str, str], Awaitable[Any]]


class ToolDefinition(BaseModel):
    """Tool definition exposed on the wire.

    Attributes:
        name: Tool identifier, unique within an integration.
        title: Display title.
        description: Human-readable description.
        inputSchema: JSON Schema describing accepted arguments.
    """

    name: str = Field(..., min_length=1, description="Unique tool identifier")
    title: str | None = Field(default=None, description="Display title")
    description: str = Field(default="", description="Human-readable description")
    inputSchema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON Schema for arguments",
    )

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AdapterBundle(BaseModel):
    """What an adapter factory hands back to the registry."""

    toolDefinitions: list[ToolDefinition]
    toolHandlers: dict[str, Any]

    model_config = ConfigDict(arbitrary_types_allowed=True)


# (integration_path, credential_param_name) -> AdapterBundle | mapping
AdapterFactory = Callable[[str, str], Awaitable[Any]]


@dataclass(frozen=True)
class IntegrationSpec:
    """Static registration-table entry for one integration.

    Attributes:
        name: Route segment naming the integration.
        factory: Async constructor satisfying the adapter contract.
        credential_param: Name the adapter uses for its upstream credential.
        display_name: Server identity reported by ``initialize``.
        version: Server version reported by ``initialize``.
        description: Free-form description for status listings.
        enabled: Disabled integrations resolve as not found.
        rate_limit: Requests per window; None uses the gateway default, 0 is unlimited.
        rate_window_seconds: Window length; None uses the gateway default.
    """

    name: str
    factory: AdapterFactory
    credential_param: str = "API_KEY"
    display_name: str | None = None
    version: str = "1.0.0"
    description: str = ""
    enabled: bool = True
    rate_limit: int | None = None
    rate_window_seconds: float | None = None


@dataclass(frozen=True)
class AdapterRegistration:
    """Constructed, read-only tool table for one integration."""

    integration_name: str
    server_name: str
    server_version: str
    tool_definitions: tuple[ToolDefinition, ...]
    tool_handlers: Mapping[str, ToolHandler]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "tool_handlers", MappingProxyType(dict(self.tool_handlers)))

    def get_definition(self, tool_name: str) -> ToolDefinition | None:
        return next((t for t in self.tool_definitions if t.name == tool_name), None)

    def get_handler(self, tool_name: str) -> ToolHandler | None:
        return self.tool_handlers.get(tool_name)
