"""JSON-RPC envelope errors."""

from typing import Any

from mcphub.auth.exceptions import MCPGatewayError


class ProtocolError(MCPGatewayError):
    """Base exception for malformed JSON-RPC traffic."""
    pass


class ParseError(ProtocolError):
    """Raised when the request body is not valid JSON."""

    def __init__(self, reason: str):
        super().__init__(message=f"Parse error: {reason}", code="PARSE_ERROR")


class InvalidRequestError(ProtocolError):
    """Raised when the body is JSON but not a valid JSON-RPC 2.0 request."""

    def __init__(self, reason: str):
        super().__init__(message=f"Invalid Request: {reason}", code="INVALID_REQUEST")


class MethodNotFoundError(ProtocolError):
    """Raised for methods the gateway does not implement."""

    def __init__(self, method: str):
        super().__init__(message=f"Method not found: {method}", code="METHOD_NOT_FOUND")
        self.method = method


class InvalidParamsError(ProtocolError):
    """Raised when method params do not have the expected shape."""

    def __init__(self, method: str, reason: str):
        super().__init__(message=f"Invalid params for {method}: {reason}", code="INVALID_PARAMS")
        self.method = method


class PayloadTooLargeError(ProtocolError):
    """Raised when the request body is over the configured size limit.

    Attributes:
        max_bytes: Maximum allowed body size.
    """

    def __init__(self, max_bytes: int):
        super().__init__(
            message=f"Request body exceeds limit of {max_bytes} bytes",
            code="PAYLOAD_TOO_LARGE",
        )
        self.max_bytes = max_bytes

    @property
    def data(self) -> dict[str, Any]:
        return {"maxBytes": self.max_bytes}
