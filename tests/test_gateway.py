"""Tests for tool invocation, result normalization and argument validation."""

import asyncio
import json
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from mcphub.auth.models import TenantContext
from mcphub.gateway import (
    MCPToolCallResult,
    ToolArgumentsError,
    invoke_tool,
    normalize_result,
    schema_errors,
    validate_arguments,
)


@pytest.fixture
def tenant() -> TenantContext:
    return TenantContext(tenant_id="u1", integration_name="search", upstream_credential="key-123")


def _text(result: MCPToolCallResult) -> str:
    assert len(result.content) == 1
    assert result.content[0]["type"] == "text"
    return result.content[0]["text"]


class TestInvokeTool:
    @pytest.mark.asyncio
    async def test_handler_receives_arguments_and_tenant(self, tenant):
        handler = AsyncMock(return_value={"content": [{"type": "text", "text": "hi"}]})

        result = await invoke_tool(handler, {"query": "foo"}, tenant, tool_name="search-query")

        handler.assert_awaited_once_with({"query": "foo"}, "key-123", "u1")
        assert result.isError is False
        assert _text(result) == "hi"

    @pytest.mark.asyncio
    async def test_exception_becomes_error_result(self, tenant):
        """A raising handler produces an isError result carrying its message."""

        async def handler(arguments, upstream_credential, tenant_id):
            raise RuntimeError("boom")

        result = await invoke_tool(handler, {}, tenant)

        assert result.isError is True
        assert _text(result) == "boom"

    @pytest.mark.asyncio
    async def test_empty_message_uses_class_name(self, tenant):
        async def handler(arguments, upstream_credential, tenant_id):
            raise KeyError()

        result = await invoke_tool(handler, {}, tenant)

        assert result.isError is True
        assert _text(result) == "KeyError"

    @pytest.mark.asyncio
    async def test_mapping_without_content_is_wrapped(self, tenant):
        handler = AsyncMock(return_value={"foo": 1})

        result = await invoke_tool(handler, {}, tenant)

        assert result.isError is False
        assert json.loads(_text(result)) == {"foo": 1}

    @pytest.mark.asyncio
    async def test_sync_handler_supported(self, tenant):
        def handler(arguments, upstream_credential, tenant_id):
            return 42

        result = await invoke_tool(handler, {}, tenant)

        assert _text(result) == "42"

    @pytest.mark.asyncio
    async def test_timeout_becomes_error_result(self, tenant):
        async def handler(arguments, upstream_credential, tenant_id):
            await asyncio.sleep(5)

        result = await invoke_tool(handler, {}, tenant, tool_name="slow", timeout=0.05)

        assert result.isError is True
        assert "timed out" in _text(result)

    @pytest.mark.asyncio
    async def test_handler_timeout_keeps_its_message(self, tenant):
        async def handler(arguments, upstream_credential, tenant_id):
            raise TimeoutError("upstream slow")

        result = await invoke_tool(handler, {}, tenant, tool_name="search-query", timeout=5)

        assert result.isError is True
        assert _text(result) == "upstream slow"

    @pytest.mark.asyncio
    async def test_handler_wait_for_timeout_not_reported_as_deadline(self, tenant):
        async def handler(arguments, upstream_credential, tenant_id):
            await asyncio.wait_for(asyncio.sleep(5), 0.01)

        result = await invoke_tool(handler, {}, tenant, tool_name="search-query", timeout=5)

        assert result.isError is True
        assert _text(result) == "TimeoutError"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, tenant):
        started = asyncio.Event()

        async def handler(arguments, upstream_credential, tenant_id):
            started.set()
            await asyncio.sleep(5)

        task = asyncio.create_task(invoke_tool(handler, {}, tenant))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestNormalizeResult:
    def test_pass_through_keeps_extra_keys(self):
        raw = {
            "content": [{"type": "text", "text": "ok"}],
            "isError": False,
            "structuredContent": {"count": 2},
        }

        result = normalize_result(raw)

        assert result.model_dump() == raw

    def test_pass_through_error_flag(self):
        result = normalize_result({"content": [{"type": "text", "text": "nope"}], "isError": True})

        assert result.isError is True

    def test_is_error_defaults_false(self):
        result = normalize_result({"content": []})

        assert result.model_dump() == {"content": [], "isError": False}

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, "null"),
            ("plain", '"plain"'),
            ([1, 2], "[1, 2]"),
        ],
    )
    def test_other_values_serialized(self, raw, expected):
        assert _text(normalize_result(raw)) == expected

    def test_unserializable_values_use_str(self):
        class Thing:
            def __str__(self):
                return "thing"

        assert json.loads(_text(normalize_result({"value": Thing()}))) == {"value": "thing"}

    def test_non_canonical_content_wrapped(self):
        raw = {"content": "not-a-list"}

        result = normalize_result(raw)

        assert json.loads(_text(result)) == raw

    def test_unencodable_pass_through_wrapped(self):
        raw = {
            "content": [{"type": "text", "text": "ok"}],
            "structuredContent": {"at": datetime(2024, 1, 1)},
        }

        result = normalize_result(raw)

        assert json.loads(_text(result))["structuredContent"] == {"at": "2024-01-01 00:00:00"}
        json.dumps(result.model_dump(), allow_nan=False)

    def test_nan_in_content_wrapped(self):
        raw = {"content": [{"type": "text", "text": "ok", "score": float("nan")}]}

        result = normalize_result(raw)

        assert "NaN" in _text(result)
        json.dumps(result.model_dump(), allow_nan=False)

    def test_wrapped_result_keeps_error_flag(self):
        raw = {"content": [{"type": "blob", "data": b"\x00\x01"}], "isError": True}

        result = normalize_result(raw)

        assert result.isError is True
        json.dumps(result.model_dump(), allow_nan=False)


class TestArgumentValidation:
    SCHEMA = {
        "type": "object",
        "properties": {
            "query": {"type": "string"},
            "limit": {"type": "integer", "minimum": 1},
        },
        "required": ["query"],
    }

    def test_valid_arguments(self):
        assert schema_errors({"query": "foo", "limit": 3}, self.SCHEMA) == []
        validate_arguments("search-query", {"query": "foo"}, self.SCHEMA)

    def test_every_violation_reported(self):
        errors = schema_errors({"limit": 0}, self.SCHEMA)

        assert len(errors) == 2
        assert any("query" in error for error in errors)
        assert any(error.startswith("limit:") for error in errors)

    def test_validate_raises_with_errors(self):
        with pytest.raises(ToolArgumentsError) as exc_info:
            validate_arguments("search-query", {"query": 5}, self.SCHEMA)

        assert exc_info.value.tool_name == "search-query"
        assert exc_info.value.data["errors"] == ["query: 5 is not of type 'string'"]

    def test_empty_schema_accepts_anything(self):
        assert schema_errors({"anything": True}, {}) == []
