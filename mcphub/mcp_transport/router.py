"""Streamable HTTP transport for the MCP protocol (POST only, no sessions)."""

import asyncio
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse, Response

from mcphub.dependencies import get_dispatcher, get_gateway_config
from mcphub.config import GatewayConfig
from mcphub.gateway.schemas import MCPErrorCodes

from .schemas import MCPErrorDetail, MCPJSONRPCResponse
from .service import DispatchOutcome, ProtocolDispatcher


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="", tags=["mcp"])

# nginx convention for "client closed request"; nobody is left to read it
CLIENT_CLOSED_REQUEST = 499


def _internal_error_response(request_id: str | int | None) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=MCPJSONRPCResponse(
            id=request_id,
            error=MCPErrorDetail(
                code=MCPErrorCodes.INTERNAL_ERROR,
                message="Internal error: response could not be encoded as JSON",
            ),
        ).to_wire(),
    )


def _outcome_response(outcome: DispatchOutcome) -> Response:
    if outcome.response is None:
        return Response(status_code=outcome.status_code, headers=outcome.headers)
    try:
        return JSONResponse(
            status_code=outcome.status_code,
            content=outcome.response.to_wire(),
            headers=outcome.headers,
        )
    except (TypeError, ValueError) as e:
        logger.error("Response encoding failed", method=outcome.method, error=str(e))
        return _internal_error_response(outcome.response.id)


async def _read_body(request: Request, max_bytes: int | None) -> bytes:
    """Read the body, stopping once it is known to be over ``max_bytes``."""
    if max_bytes is None:
        return await request.body()

    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        chunks.append(chunk)
        size += len(chunk)
        if size > max_bytes:
            break
    return b"".join(chunks)


async def _dispatch_until_disconnect(
    request: Request,
    dispatcher: ProtocolDispatcher,
    integration_name: str,
    authorization: str | None,
    body: bytes,
    poll_seconds: float,
    origin: str | None = None,
) -> DispatchOutcome | None:
    """Run the dispatcher, cancelling it if the client goes away.

    Returns:
        The outcome, or None if the client disconnected first.
    """
    task = asyncio.create_task(dispatcher.dispatch(integration_name, authorization, body, origin))
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_seconds)
            if task in done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                logger.info("Client disconnected, request cancelled", integration=integration_name)
                return None
    finally:
        if not task.done():
            task.cancel()


@router.post("/{integration_name}/mcp")
async def mcp_post(
    integration_name: str,
    request: Request,
    dispatcher: Annotated[ProtocolDispatcher, Depends(get_dispatcher)],
    config: Annotated[GatewayConfig, Depends(get_gateway_config)],
    authorization: Annotated[str | None, Header()] = None,
    origin: Annotated[str | None, Header()] = None,
) -> Response:
    """Handle one JSON-RPC request addressed to an integration.

    Every outcome, including authentication and envelope failures, is a
    JSON-RPC response; notifications are acknowledged with 202 and no body.
    """
    body = await _read_body(request, config.max_request_bytes)
    outcome = await _dispatch_until_disconnect(
        request=request,
        dispatcher=dispatcher,
        integration_name=integration_name,
        authorization=authorization,
        body=body,
        poll_seconds=config.disconnect_poll_seconds,
        origin=origin,
    )
    if outcome is None:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    return _outcome_response(outcome)


@router.api_route("/{integration_name}/mcp", methods=["GET", "DELETE"])
async def mcp_method_not_allowed(integration_name: str, request: Request) -> JSONResponse:
    # No SSE stream and no sessions to terminate.
    return JSONResponse(
        status_code=405,
        content=MCPJSONRPCResponse(
            id=None,
            error=MCPErrorDetail(
                code=MCPErrorCodes.METHOD_NOT_ALLOWED,
                message=f"{request.method} is not supported on /{integration_name}/mcp; use POST",
            ),
        ).to_wire(),
        headers={"Allow": "POST"},
    )
