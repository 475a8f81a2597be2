"""Calculator integration: basic arithmetic on two numbers."""

from typing import Any

from mcphub.registry.models import AdapterBundle, ToolDefinition


OPERATIONS = ("add", "subtract", "multiply", "divide")

CALCULATE_TOOL = ToolDefinition(
    name="calculate",
    title="Calculator",
    description="Performs basic arithmetic operations",
    inputSchema={
        "type": "object",
        "properties": {
            "operation": {
                "type": "string",
                "enum": list(OPERATIONS),
                "description": "The arithmetic operation to perform",
            },
            "a": {"type": "number", "description": "First number"},
            "b": {"type": "number", "description": "Second number"},
        },
        "required": ["operation", "a", "b"],
    },
)


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


async def calculate(arguments: dict[str, Any], upstream_credential: str, tenant_id: str) -> dict[str, Any]:
    operation = arguments["operation"]
    a = arguments["a"]
    b = arguments["b"]

    if operation == "add":
        result = a + b
    elif operation == "subtract":
        result = a - b
    elif operation == "multiply":
        result = a * b
    elif operation == "divide":
        if b == 0:
            raise ZeroDivisionError("Division by zero is not allowed")
        result = a / b
    else:
        raise ValueError(f"Unknown operation: {operation}")

    return {
        "content": [
            {
                "type": "text",
                "text": f"{_format_number(a)} {operation} {_format_number(b)} = {_format_number(result)}",
            }
        ]
    }


async def create_adapter(integration_path: str, credential_param: str) -> AdapterBundle:
    return AdapterBundle(
        toolDefinitions=[CALCULATE_TOOL],
        toolHandlers={"calculate": calculate},
    )
