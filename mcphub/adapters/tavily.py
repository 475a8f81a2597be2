"""Tavily integration: web search through the Tavily HTTP API."""

from typing import Any

import httpx

from mcphub.registry.models import AdapterBundle, ToolDefinition


TAVILY_SEARCH_URL = "https://api.tavily.com/search"

# Default timeout for upstream requests
DEFAULT_TIMEOUT_SECONDS = 30.0
MAX_RESULTS = 10


class TavilySearchError(Exception):
    """Raised when the Tavily API cannot be reached or rejects the search."""
    pass


SEARCH_TOOL = ToolDefinition(
    name="tavily-search",
    title="Tavily Search",
    description=(
        "A powerful web search tool that provides comprehensive, real-time "
        "results using Tavily's AI search engine"
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Search query"},
        },
        "required": ["query"],
    },
)


def format_results(query: str, results: list[dict[str, Any]]) -> str:
    lines = [f'Search Results for: "{query}"', ""]
    if not results:
        lines.append("No results found")
    for index, result in enumerate(results, start=1):
        lines.append(f"{index}. **{result.get('title', '')}**")
        lines.append(f"   {result.get('url', '')}")
        lines.append(f"   {result.get('content', '')}")
        lines.append("")
    return "\n".join(lines).rstrip()


async def search(
    client: httpx.AsyncClient,
    api_key: str,
    query: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> list[dict[str, Any]]:
    """Run one basic-depth search.

    Args:
        client: HTTP client to send the request with.
        api_key: Tenant's Tavily API key.
        query: Search query.
        timeout: Request timeout in seconds.

    Returns:
        The ``results`` list from the Tavily response.

    Raises:
        TavilySearchError: On transport failure or an HTTP error status.
    """
    payload = {
        "api_key": api_key,
        "query": query,
        "search_depth": "basic",
        "topic": "general",
        "max_results": MAX_RESULTS,
        "include_images": False,
        "include_raw_content": False,
        "include_domains": [],
        "exclude_domains": [],
    }

    try:
        response = await client.post(TAVILY_SEARCH_URL, json=payload, timeout=timeout)
    except httpx.TimeoutException:
        raise TavilySearchError(f"Tavily search failed: timed out after {timeout}s")
    except httpx.RequestError as e:
        raise TavilySearchError(f"Tavily search failed: {e}")

    if response.status_code >= 400:
        raise TavilySearchError(
            f"Tavily search failed: HTTP {response.status_code}: {response.text[:200]}"
        )

    return response.json().get("results") or []


def make_search_handler(client: httpx.AsyncClient | None = None):
    """Build the ``tavily-search`` handler.

    Without a shared client each call opens its own short-lived one.
    """

    async def tavily_search(arguments: dict[str, Any], upstream_credential: str, tenant_id: str) -> dict[str, Any]:
        if not upstream_credential:
            raise TavilySearchError("Tavily API key is required")

        query = arguments["query"]
        if client is not None:
            results = await search(client, upstream_credential, query)
        else:
            async with httpx.AsyncClient() as own_client:
                results = await search(own_client, upstream_credential, query)

        return {"content": [{"type": "text", "text": format_results(query, results)}]}

    return tavily_search


def make_adapter_factory(client: httpx.AsyncClient | None = None):
    async def create_adapter(integration_path: str, credential_param: str) -> AdapterBundle:
        return AdapterBundle(
            toolDefinitions=[SEARCH_TOOL],
            toolHandlers={"tavily-search": make_search_handler(client)},
        )

    return create_adapter


create_adapter = make_adapter_factory()
