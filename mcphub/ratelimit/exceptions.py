"""Rate limit exceptions."""

import math
from typing import Any

from mcphub.auth.exceptions import MCPGatewayError


class RateLimitExceededError(MCPGatewayError):
    """Raised when a rate limit is exceeded.

    Attributes:
        integration_name: Integration whose quota is exhausted.
        limit: The rate limit that was exceeded.
        retry_after: Seconds until request can be retried.
    """

    def __init__(self, integration_name: str, limit: int, retry_after: float):
        super().__init__(
            message=(
                f"Rate limit exceeded for integration '{integration_name}' "
                f"({limit} requests per window). Retry after {retry_after:.1f}s"
            ),
            code="RATE_LIMIT_EXCEEDED",
        )
        self.integration_name = integration_name
        self.limit = limit
        self.retry_after = retry_after

    @property
    def retry_after_header(self) -> str:
        return str(max(1, math.ceil(self.retry_after)))

    @property
    def data(self) -> dict[str, Any]:
        return {"retryAfter": round(self.retry_after, 3), "limit": self.limit}
