"""Built-in integrations.

The registration table is explicit: every integration the gateway can serve
is listed here, keyed by the route segment that addresses it.
"""

import httpx

from mcphub.registry.models import IntegrationSpec

from . import calculator, tavily, utility


def builtin_adapters(http_client: httpx.AsyncClient | None = None) -> dict[str, IntegrationSpec]:
    """Build the built-in registration table.

    Args:
        http_client: Shared client for integrations that call upstream APIs.
    """
    return {
        "calculator": IntegrationSpec(
            name="calculator",
            factory=calculator.create_adapter,
            display_name="calculator",
            description="Basic arithmetic",
        ),
        "utility": IntegrationSpec(
            name="utility",
            factory=utility.create_adapter,
            display_name="utility",
            description="Echo and timestamp helpers",
        ),
        "tavily": IntegrationSpec(
            name="tavily",
            factory=tavily.make_adapter_factory(http_client),
            credential_param="TAVILY_API_KEY",
            display_name="tavily",
            description="Tavily web search",
        ),
    }


__all__ = ["builtin_adapters"]
