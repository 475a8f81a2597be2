"""Tests for the built-in integrations."""

import json
import re

import httpx
import pytest

from mcphub.adapters import builtin_adapters, calculator, tavily, utility
from mcphub.gateway import schema_errors
from mcphub.registry import AdapterRegistry


def _text(result: dict) -> str:
    return result["content"][0]["text"]


class TestCalculator:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "operation, a, b, expected",
        [
            ("add", 2, 3, "2 add 3 = 5"),
            ("subtract", 2, 3, "2 subtract 3 = -1"),
            ("multiply", 2.5, 4, "2.5 multiply 4 = 10"),
            ("divide", 7, 2, "7 divide 2 = 3.5"),
        ],
    )
    async def test_operations(self, operation, a, b, expected):
        result = await calculator.calculate({"operation": operation, "a": a, "b": b}, "", "u1")

        assert _text(result) == expected

    @pytest.mark.asyncio
    async def test_divide_by_zero_raises(self):
        with pytest.raises(ZeroDivisionError, match="Division by zero"):
            await calculator.calculate({"operation": "divide", "a": 1, "b": 0}, "", "u1")

    def test_schema_rejects_unknown_operation(self):
        errors = schema_errors({"operation": "power", "a": 1, "b": 2}, calculator.CALCULATE_TOOL.inputSchema)

        assert len(errors) == 1


class TestUtility:
    @pytest.mark.asyncio
    async def test_echo(self):
        result = await utility.echo({"message": "hello"}, "", "u1")

        assert _text(result) == "Echo: hello"

    @pytest.mark.asyncio
    async def test_timestamp_unix(self):
        result = await utility.timestamp({"format": "unix"}, "", "u1")

        assert re.fullmatch(r"Current timestamp \(unix\): \d+", _text(result))

    @pytest.mark.asyncio
    async def test_timestamp_defaults_to_iso(self):
        result = await utility.timestamp({}, "", "u1")

        assert _text(result).startswith("Current timestamp (iso): ")

    @pytest.mark.asyncio
    async def test_schemas_projected_from_models(self):
        bundle = await utility.create_adapter("/srv/utility", "API_KEY")
        schemas = {tool.name: tool.inputSchema for tool in bundle.toolDefinitions}

        assert schemas["echo"]["required"] == ["message"]
        assert schemas["timestamp"]["properties"]["format"]["enum"] == ["iso", "unix", "readable"]
        assert schema_errors({"format": "weekday"}, schemas["timestamp"])


class TestTavily:
    @pytest.mark.asyncio
    async def test_search_posts_credential_and_formats(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["payload"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"results": [{"title": "Foo", "url": "https://foo.example", "content": "About foo"}]},
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            search = tavily.make_search_handler(client)
            result = await search({"query": "foo"}, "tvly-key", "u1")

        assert seen["url"] == tavily.TAVILY_SEARCH_URL
        assert seen["payload"]["api_key"] == "tvly-key"
        assert seen["payload"]["query"] == "foo"
        assert _text(result) == (
            'Search Results for: "foo"\n\n'
            "1. **Foo**\n"
            "   https://foo.example\n"
            "   About foo"
        )

    @pytest.mark.asyncio
    async def test_no_results(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"results": []}))

        async with httpx.AsyncClient(transport=transport) as client:
            result = await tavily.make_search_handler(client)({"query": "zzz"}, "tvly-key", "u1")

        assert _text(result).endswith("No results found")

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, text="bad key"))

        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(tavily.TavilySearchError, match="HTTP 401"):
                await tavily.make_search_handler(client)({"query": "foo"}, "tvly-key", "u1")

    @pytest.mark.asyncio
    async def test_missing_credential_raises(self):
        with pytest.raises(tavily.TavilySearchError, match="API key is required"):
            await tavily.make_search_handler()({"query": "foo"}, "", "u1")


@pytest.mark.asyncio
async def test_builtin_table_constructs():
    table = builtin_adapters()
    registry = AdapterRegistry(table)

    for name in table:
        registration = await registry.resolve(name)
        assert registration.tool_definitions

    assert table["tavily"].credential_param == "TAVILY_API_KEY"


@pytest.mark.asyncio
async def test_builtin_tavily_uses_shared_client():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, json={"results": []})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        registry = AdapterRegistry(builtin_adapters(client))
        registration = await registry.resolve("tavily")
        result = await registration.get_handler("tavily-search")({"query": "foo"}, "tvly-key", "u1")

    assert seen["payload"]["query"] == "foo"
    assert _text(result).endswith("No results found")


def test_adapters_package_exports_only_the_factory():
    import mcphub.adapters

    assert mcphub.adapters.__all__ == ["builtin_adapters"]
    assert not hasattr(mcphub.adapters, "BUILTIN_ADAPTERS")
