"""Adapter resolution exceptions."""

from typing import Any

from mcphub.auth.exceptions import MCPGatewayError


class AdapterLoadError(MCPGatewayError):
    """Base exception for integrations that cannot be resolved.

    Attributes:
        integration_name: Integration that failed to resolve.
    """

    def __init__(self, integration_name: str, message: str, code: str):
        super().__init__(message=message, code=code)
        self.integration_name = integration_name


class AdapterNotFoundError(AdapterLoadError):
    """Raised when no enabled integration is registered under the name."""

    def __init__(self, integration_name: str):
        super().__init__(
            integration_name,
            message=f"Integration '{integration_name}' not found",
            code="INTEGRATION_NOT_FOUND",
        )


class AdapterConstructionError(AdapterLoadError):
    """Raised when an integration's factory fails; a later resolve retries.

    Attributes:
        reason: Description of the construction failure.
    """

    def __init__(self, integration_name: str, reason: str):
        super().__init__(
            integration_name,
            message=f"Integration '{integration_name}' failed to load: {reason}",
            code="INTEGRATION_UNAVAILABLE",
        )
        self.reason = reason

    @property
    def data(self) -> dict[str, Any]:
        return {"integration": self.integration_name, "retryable": True}
