"""Utility integration: echo and timestamp tools.

Argument schemas are authored as pydantic models and projected to JSON
Schema once, when the adapter is constructed.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from mcphub.registry.models import AdapterBundle, ToolDefinition


class EchoArguments(BaseModel):
    message: str = Field(..., description="The message to echo back")


class TimestampArguments(BaseModel):
    format: Literal["iso", "unix", "readable"] = Field(
        default="iso",
        description="The timestamp format to return",
    )


def _input_schema(model: type[BaseModel]) -> dict[str, Any]:
    schema = model.model_json_schema()
    schema.pop("title", None)
    return schema


async def echo(arguments: dict[str, Any], upstream_credential: str, tenant_id: str) -> dict[str, Any]:
    args = EchoArguments.model_validate(arguments)
    return {"content": [{"type": "text", "text": f"Echo: {args.message}"}]}


def format_timestamp(now: datetime, fmt: str) -> str:
    if fmt == "unix":
        return str(int(now.timestamp()))
    if fmt == "readable":
        return now.strftime("%Y-%m-%d %H:%M:%S %Z")
    return now.isoformat()


async def timestamp(arguments: dict[str, Any], upstream_credential: str, tenant_id: str) -> dict[str, Any]:
    args = TimestampArguments.model_validate(arguments)
    value = format_timestamp(datetime.now(timezone.utc), args.format)
    return {"content": [{"type": "text", "text": f"Current timestamp ({args.format}): {value}"}]}


async def create_adapter(integration_path: str, credential_param: str) -> AdapterBundle:
    return AdapterBundle(
        toolDefinitions=[
            ToolDefinition(
                name="echo",
                title="Echo Tool",
                description="Echoes back the input message",
                inputSchema=_input_schema(EchoArguments),
            ),
            ToolDefinition(
                name="timestamp",
                title="Timestamp Tool",
                description="Returns current timestamp in various formats",
                inputSchema=_input_schema(TimestampArguments),
            ),
        ],
        toolHandlers={"echo": echo, "timestamp": timestamp},
    )
