"""JSON Schema validation of tool arguments."""

from typing import Any

from jsonschema import Draft7Validator

from .exceptions import ToolArgumentsError


def schema_errors(arguments: Any, schema: dict[str, Any] | None) -> list[str]:
    """
    Validate data against a JSON Schema.

    Args:
        arguments: The data to validate
        schema: JSON Schema to validate against

    Returns:
        List of error messages, empty when valid
    """
    if not schema:
        return []

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(arguments), key=lambda e: [str(p) for p in e.path])

    return [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]


def validate_arguments(tool_name: str, arguments: Any, schema: dict[str, Any] | None) -> None:
    """Reject arguments that do not satisfy the tool's input schema.

    Raises:
        ToolArgumentsError: With every violation found.
    """
    errors = schema_errors(arguments, schema)
    if errors:
        raise ToolArgumentsError(tool_name=tool_name, errors=errors)
