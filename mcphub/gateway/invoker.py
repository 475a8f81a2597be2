"""Tool invocation with uniform result normalization."""

import asyncio
import inspect
import json
import time
from typing import Any, Mapping

import structlog
from pydantic import BaseModel, ValidationError

from mcphub.auth.models import TenantContext
from mcphub.registry.models import ToolHandler

from .schemas import MCPToolCallResult


logger = structlog.get_logger(__name__)

# Configuration defaults
DEFAULT_TIMEOUT_SECONDS = 60.0


def _serialize(value: Any) -> str:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    return json.dumps(value, default=str, ensure_ascii=False)


def _error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class _HandlerTimeout(Exception):
    """A timeout raised by the handler itself rather than by the call deadline."""

    def __init__(self, original: BaseException):
        super().__init__(_error_message(original))
        self.original = original


def _is_wire_safe(result: MCPToolCallResult) -> bool:
    try:
        json.dumps(result.model_dump(), allow_nan=False)
    except (TypeError, ValueError):
        return False
    return True


def normalize_result(raw: Any) -> MCPToolCallResult:
    """Coerce whatever a handler returned into a tool call result.

    A mapping that already has ``content`` passes through as long as every
    value in it can be written as strict JSON; anything else is serialized
    into a single text block.

    Args:
        raw: Handler return value.

    Returns:
        Canonical tool call result.
    """
    result: MCPToolCallResult | None = None
    is_error = False
    if isinstance(raw, MCPToolCallResult):
        result = raw
    elif isinstance(raw, Mapping) and "content" in raw:
        try:
            result = MCPToolCallResult.model_validate(dict(raw))
        except ValidationError as e:
            logger.warning("Handler returned non-canonical content", errors=e.error_count())

    if result is not None:
        if _is_wire_safe(result):
            return result
        logger.warning("Handler returned values that are not valid JSON")
        raw, is_error = result.model_dump(), result.isError

    return MCPToolCallResult.text(_serialize(raw), is_error=is_error)


async def _call_handler(handler: ToolHandler, arguments: dict[str, Any], tenant: TenantContext) -> Any:
    try:
        result = handler(arguments, tenant.upstream_credential, tenant.tenant_id)
        if inspect.isawaitable(result):
            result = await result
    except (TimeoutError, asyncio.TimeoutError) as e:
        # Keep the handler's own timeouts apart from the call deadline
        raise _HandlerTimeout(e) from e
    return result


async def invoke_tool(
    handler: ToolHandler,
    arguments: dict[str, Any],
    tenant: TenantContext,
    tool_name: str = "unknown",
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
) -> MCPToolCallResult:
    """Invoke a tool handler on behalf of a tenant.

    This is the single place handler exceptions are caught. A failing or
    timed-out handler produces an ``isError`` result instead of raising;
    cancellation still propagates to the caller.

    Args:
        handler: Tool handler from the integration's registration.
        arguments: Tool arguments.
        tenant: Verified tenant context.
        tool_name: Tool name, for logging and error text.
        timeout: Seconds to wait for the handler; None waits forever.

    Returns:
        MCPToolCallResult produced exactly once per call.
    """
    start_time = time.perf_counter()

    try:
        raw = await asyncio.wait_for(_call_handler(handler, arguments, tenant), timeout)
    except asyncio.TimeoutError:
        result = MCPToolCallResult.text(
            f"Tool '{tool_name}' timed out after {timeout}s", is_error=True
        )
    except Exception as e:
        error = e.original if isinstance(e, _HandlerTimeout) else e
        logger.warning(
            "Tool handler raised",
            integration=tenant.integration_name,
            tool=tool_name,
            tenant_id=tenant.tenant_id,
            error_type=error.__class__.__name__,
        )
        result = MCPToolCallResult.text(_error_message(error), is_error=True)
    else:
        result = normalize_result(raw)

    logger.info(
        "Tool call completed",
        integration=tenant.integration_name,
        tool=tool_name,
        tenant_id=tenant.tenant_id,
        is_error=result.isError,
        duration_ms=int((time.perf_counter() - start_time) * 1000),
    )
    return result
