"""Custom exceptions for authentication and the shared gateway error base."""

from typing import Any


class MCPGatewayError(Exception):
    """Base exception for all MCP Hub errors."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    @property
    def data(self) -> dict[str, Any] | None:
        """Extra structured detail for the JSON-RPC error object."""
        return None


class ConfigurationError(MCPGatewayError):
    """Raised at startup when the gateway cannot be configured safely."""
    pass


class AuthenticationError(MCPGatewayError):
    """Raised when a request cannot be authenticated."""
    pass


class MalformedTokenError(AuthenticationError):
    """Raised when the token or Authorization header cannot be parsed."""

    def __init__(self, message: str = "Malformed access token"):
        super().__init__(message=message, code="TOKEN_MALFORMED")


class InvalidSignatureError(AuthenticationError):
    """Raised when the token signature does not verify."""

    def __init__(self, message: str = "Access token signature is invalid"):
        super().__init__(message=message, code="TOKEN_INVALID_SIGNATURE")


class ExpiredTokenError(AuthenticationError):
    """Raised when the token has expired."""

    def __init__(self, message: str = "Access token has expired"):
        super().__init__(message=message, code="TOKEN_EXPIRED")


class MissingClaimError(AuthenticationError):
    """Raised when a required claim is absent or blank.

    Attributes:
        claim: Name of the missing claim.
    """

    def __init__(self, claim: str):
        super().__init__(
            message=f"Access token missing required '{claim}' claim",
            code="TOKEN_MISSING_CLAIM",
        )
        self.claim = claim


class IntegrationMismatchError(AuthenticationError):
    """Raised when the token was issued for a different integration than the route."""

    def __init__(self, token_integration: str, route_integration: str):
        super().__init__(
            message=(
                f"Access token is for integration '{token_integration}', "
                f"not '{route_integration}'"
            ),
            code="TOKEN_INTEGRATION_MISMATCH",
        )
        self.token_integration = token_integration
        self.route_integration = route_integration


class OriginNotAllowedError(MCPGatewayError):
    """Raised when a browser Origin is not on the allow-list.

    Attributes:
        origin: The rejected Origin header value.
    """

    def __init__(self, origin: str):
        super().__init__(message=f"Invalid origin for security: {origin}", code="ORIGIN_NOT_ALLOWED")
        self.origin = origin
