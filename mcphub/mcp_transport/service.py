"""Business logic for MCP protocol handlers."""

import json
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import structlog
from pydantic import BaseModel, ValidationError

from mcphub.auth.exceptions import AuthenticationError, MCPGatewayError, OriginNotAllowedError
from mcphub.auth.models import TenantContext
from mcphub.auth.origins import OriginPolicy
from mcphub.auth.tokens import TokenAuthenticator
from mcphub.gateway.exceptions import ToolArgumentsError, ToolNotFoundError
from mcphub.gateway.invoker import DEFAULT_TIMEOUT_SECONDS, invoke_tool
from mcphub.gateway.schemas import MCPErrorCodes
from mcphub.gateway.validation import validate_arguments
from mcphub.metrics import GatewayMetrics
from mcphub.ratelimit import RateLimiter, RateLimitExceededError
from mcphub.registry.exceptions import AdapterConstructionError, AdapterNotFoundError
from mcphub.registry.models import AdapterRegistration
from mcphub.registry.service import AdapterRegistry

from .exceptions import (
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    PayloadTooLargeError,
)
from .schemas import (
    MCPErrorDetail,
    MCPInitializeParams,
    MCPJSONRPCRequest,
    MCPJSONRPCResponse,
    MCPToolCallParams,
    MCPToolListResult,
)


logger = structlog.get_logger(__name__)

SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[0]

# (exception class, JSON-RPC code, HTTP status); first match wins
ERROR_MAPPING: tuple[tuple[type[MCPGatewayError], int, int], ...] = (
    (OriginNotAllowedError, MCPErrorCodes.AUTHENTICATION_FAILED, 403),
    (AuthenticationError, MCPErrorCodes.AUTHENTICATION_FAILED, 401),
    (AdapterNotFoundError, MCPErrorCodes.INTEGRATION_NOT_FOUND, 404),
    (AdapterConstructionError, MCPErrorCodes.INTEGRATION_UNAVAILABLE, 503),
    (RateLimitExceededError, MCPErrorCodes.RATE_LIMITED, 429),
    (PayloadTooLargeError, MCPErrorCodes.INVALID_REQUEST, 413),
    (ParseError, MCPErrorCodes.PARSE_ERROR, 400),
    (InvalidRequestError, MCPErrorCodes.INVALID_REQUEST, 400),
    (MethodNotFoundError, MCPErrorCodes.METHOD_NOT_FOUND, 200),
    (ToolNotFoundError, MCPErrorCodes.TOOL_NOT_FOUND, 200),
    (InvalidParamsError, MCPErrorCodes.INVALID_PARAMS, 200),
    (ToolArgumentsError, MCPErrorCodes.INVALID_PARAMS, 200),
)


@dataclass
class DispatchOutcome:
    """Transport-neutral result of handling one request.

    ``response`` is None for acknowledged notifications. ``method`` is None
    when the request failed before its envelope was read.
    """

    status_code: int
    response: MCPJSONRPCResponse | None = None
    headers: dict[str, str] = field(default_factory=dict)
    method: str | None = None


def _outcome_label(outcome: DispatchOutcome) -> str:
    response = outcome.response
    if response is None:
        return "success"
    if response.error is not None:
        return "error"
    if isinstance(response.result, dict) and response.result.get("isError"):
        return "tool_error"
    return "success"


def _peek_request_id(payload: Any) -> str | int | None:
    if isinstance(payload, dict):
        request_id = payload.get("id")
        if isinstance(request_id, (str, int)) and not isinstance(request_id, bool):
            return request_id
    return None


def _describe_validation_error(e: ValidationError) -> str:
    parts = []
    for error in e.errors():
        location = ".".join(str(p) for p in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


def parse_envelope(payload: Any) -> MCPJSONRPCRequest:
    """Validate a decoded body as a JSON-RPC 2.0 request.

    Raises:
        InvalidRequestError: Not an object, wrong version, missing method or id.
    """
    if not isinstance(payload, dict):
        raise InvalidRequestError("request must be a JSON object")

    try:
        request = MCPJSONRPCRequest.model_validate(payload)
    except ValidationError as e:
        raise InvalidRequestError(_describe_validation_error(e)) from e

    if request.id is None and not request.is_notification:
        raise InvalidRequestError("id is required")
    return request


def _parse_params(model: type[BaseModel], method: str, params: dict[str, Any] | None) -> Any:
    try:
        return model.model_validate(params or {})
    except ValidationError as e:
        raise InvalidParamsError(method, _describe_validation_error(e)) from e


def negotiate_protocol_version(requested: str | None) -> str:
    if requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return LATEST_PROTOCOL_VERSION


async def handle_initialize(params: MCPInitializeParams, registration: AdapterRegistration) -> dict[str, Any]:
    """Handle initialize request.

    Args:
        params: Initialize parameters from client.
        registration: Resolved integration.

    Returns:
        Server initialization response.
    """
    return {
        "protocolVersion": negotiate_protocol_version(params.protocolVersion),
        "capabilities": {
            "tools": {
                "listChanged": False  # Tool tables never change after construction
            }
        },
        "serverInfo": {
            "name": registration.server_name,
            "version": registration.server_version,
        },
    }


async def handle_tools_list(registration: AdapterRegistration) -> MCPToolListResult:
    """Handle tools/list: the integration's definitions, verbatim and in order."""
    return MCPToolListResult(tools=[tool.to_wire() for tool in registration.tool_definitions])


class ProtocolDispatcher:
    """Top-level handler for one JSON-RPC request to one integration.

    Every request is authenticated and dispatched on its own; there is no
    session state. Every path, including failures, ends in a response.
    """

    def __init__(
        self,
        authenticator: TokenAuthenticator,
        registry: AdapterRegistry,
        rate_limiter: RateLimiter | None = None,
        tool_timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
        origin_policy: OriginPolicy | None = None,
        max_request_bytes: int | None = None,
        metrics: GatewayMetrics | None = None,
    ) -> None:
        self.authenticator = authenticator
        self.registry = registry
        self.rate_limiter = rate_limiter
        self.tool_timeout = tool_timeout
        self.origin_policy = origin_policy
        self.max_request_bytes = max_request_bytes
        self.metrics = metrics
        self._methods: dict[str, Callable[..., Awaitable[Any]]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    async def dispatch(
        self,
        integration_name: str,
        authorization: str | None,
        body: bytes,
        origin: str | None = None,
    ) -> DispatchOutcome:
        """Handle one request end to end.

        Args:
            integration_name: Integration named by the route.
            authorization: Raw Authorization header value.
            body: Raw request body.
            origin: Origin header value, if the caller is a browser.

        Returns:
            DispatchOutcome carrying the JSON-RPC response and HTTP status.
        """
        start_time = time.perf_counter()
        outcome = await self._dispatch(integration_name, authorization, body, origin)
        if self.metrics is not None:
            self._record(integration_name, outcome, time.perf_counter() - start_time)
        return outcome

    async def _dispatch(
        self,
        integration_name: str,
        authorization: str | None,
        body: bytes,
        origin: str | None,
    ) -> DispatchOutcome:
        request_id: str | int | None = None
        method: str | None = None

        try:
            oversized = self.max_request_bytes is not None and len(body) > self.max_request_bytes
            parse_error: ParseError | None = None
            payload: Any = None
            if not oversized:
                try:
                    payload = json.loads(body)
                except ValueError as e:
                    parse_error = ParseError(str(e))
            request_id = _peek_request_id(payload)

            if self.origin_policy is not None:
                self.origin_policy.check(origin)
            tenant = self.authenticator.authenticate(authorization, integration_name)

            if oversized:
                raise PayloadTooLargeError(self.max_request_bytes)
            if parse_error is not None:
                raise parse_error
            request = parse_envelope(payload)
            method = request.method

            if request.is_notification:
                logger.debug("Notification acknowledged", integration=integration_name, method=method)
                return DispatchOutcome(status_code=202, method=method)

            handler = self._methods.get(method)
            if handler is None:
                raise MethodNotFoundError(method)

            registration = await self.registry.resolve(integration_name)
            result = await handler(request, registration, tenant)
            return DispatchOutcome(
                status_code=200,
                response=MCPJSONRPCResponse(id=request_id, result=result),
                method=method,
            )

        except MCPGatewayError as e:
            return self._error_outcome(request_id, e, method)
        except Exception as e:
            logger.error(
                "Internal error processing request",
                integration=integration_name,
                method=method or "unknown",
                error=str(e),
                exc_info=True,
            )
            return DispatchOutcome(
                status_code=500,
                response=MCPJSONRPCResponse(
                    id=request_id,
                    error=MCPErrorDetail(
                        code=MCPErrorCodes.INTERNAL_ERROR,
                        message=f"Internal error: {e}",
                    ),
                ),
                method=method,
            )

    def _error_outcome(
        self, request_id: str | int | None, exc: MCPGatewayError, method: str | None = None
    ) -> DispatchOutcome:
        code, status_code = MCPErrorCodes.INTERNAL_ERROR, 500
        for exc_type, rpc_code, http_status in ERROR_MAPPING:
            if isinstance(exc, exc_type):
                code, status_code = rpc_code, http_status
                break

        headers: dict[str, str] = {}
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = exc.retry_after_header

        return DispatchOutcome(
            status_code=status_code,
            response=MCPJSONRPCResponse(
                id=request_id,
                error=MCPErrorDetail(code=code, message=exc.message, data=exc.data),
            ),
            headers=headers,
            method=method,
        )

    def _record(self, integration_name: str, outcome: DispatchOutcome, duration: float) -> None:
        # Label values are bounded to registered names and known methods
        integration = integration_name if self.registry.is_registered(integration_name) else "unknown"
        method = outcome.method
        if method is None:
            method = "unknown"
        elif method.startswith("notifications/"):
            method = "notification"
        elif method not in self._methods:
            method = "other"

        self.metrics.record_request(integration, method, _outcome_label(outcome), duration)
        if outcome.status_code == 429:
            self.metrics.record_rate_limit_hit(integration)

    async def _initialize(
        self, request: MCPJSONRPCRequest, registration: AdapterRegistration, tenant: TenantContext
    ) -> dict[str, Any]:
        params = _parse_params(MCPInitializeParams, request.method, request.params)
        return await handle_initialize(params, registration)

    async def _ping(
        self, request: MCPJSONRPCRequest, registration: AdapterRegistration, tenant: TenantContext
    ) -> dict[str, Any]:
        return {}

    async def _tools_list(
        self, request: MCPJSONRPCRequest, registration: AdapterRegistration, tenant: TenantContext
    ) -> dict[str, Any]:
        result = await handle_tools_list(registration)
        return result.model_dump()

    async def _tools_call(
        self, request: MCPJSONRPCRequest, registration: AdapterRegistration, tenant: TenantContext
    ) -> dict[str, Any]:
        call_params: MCPToolCallParams = _parse_params(MCPToolCallParams, request.method, request.params)
        result = await handle_tools_call(
            registration=registration,
            tenant=tenant,
            name=call_params.name,
            arguments=call_params.arguments,
            rate_limiter=self.rate_limiter,
            timeout=self.tool_timeout,
        )
        return result.model_dump()


def check_rate_limit(rate_limiter: RateLimiter | None, integration_name: str, tenant_id: str) -> None:
    """Count the attempt against the tenant's quota.

    Raises:
        RateLimitExceededError: If the quota for the current window is used up.
    """
    if rate_limiter is None:
        return

    result = rate_limiter.check_and_increment(integration_name, tenant_id)
    if not result.allowed:
        logger.info(
            "Rate limit exceeded",
            integration=integration_name,
            tenant_id=tenant_id,
            limit=result.limit,
            retry_after=round(result.retry_after, 3),
        )
        raise RateLimitExceededError(
            integration_name=integration_name,
            limit=result.limit,
            retry_after=result.retry_after,
        )


async def handle_tools_call(
    registration: AdapterRegistration,
    tenant: TenantContext,
    name: str,
    arguments: dict[str, Any],
    rate_limiter: RateLimiter | None = None,
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
):
    """Handle tools/call request.

    Args:
        registration: Resolved integration.
        tenant: Verified tenant context.
        name: Tool name to invoke.
        arguments: Tool arguments.
        rate_limiter: Optional per-tenant quota enforcement.
        timeout: Handler timeout in seconds.

    Returns:
        Tool execution result; tool failures come back with ``isError`` set.

    Raises:
        ToolNotFoundError: Unknown tool; no handler runs.
        RateLimitExceededError: Tenant quota exhausted.
        ToolArgumentsError: Arguments violate the tool's input schema.
    """
    handler = registration.get_handler(name)
    definition = registration.get_definition(name)
    if handler is None or definition is None:
        raise ToolNotFoundError(tool_name=name, integration_name=registration.integration_name)

    check_rate_limit(rate_limiter, registration.integration_name, tenant.tenant_id)
    validate_arguments(name, arguments, definition.inputSchema)

    return await invoke_tool(
        handler=handler,
        arguments=arguments,
        tenant=tenant,
        tool_name=name,
        timeout=timeout,
    )
