"""Global dependencies for the application.

Components are built once in ``create_app`` and stored on ``app.state``.
"""

from typing import TYPE_CHECKING

from fastapi import Request

from .config import GatewayConfig
from .metrics import GatewayMetrics
from .registry.service import AdapterRegistry

if TYPE_CHECKING:
    from .mcp_transport.service import ProtocolDispatcher


async def get_dispatcher(request: Request) -> "ProtocolDispatcher":
    return request.app.state.dispatcher


async def get_registry(request: Request) -> AdapterRegistry:
    return request.app.state.registry


async def get_metrics(request: Request) -> GatewayMetrics | None:
    return request.app.state.metrics


async def get_gateway_config(request: Request) -> GatewayConfig:
    """Dependency to get the frozen runtime configuration.

    Args:
        request: The FastAPI request object.

    Returns:
        The GatewayConfig built at startup.
    """
    return request.app.state.gateway_config
