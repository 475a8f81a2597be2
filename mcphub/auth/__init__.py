"""Auth module initialization."""

from .exceptions import (
    MCPGatewayError,
    ConfigurationError,
    AuthenticationError,
    MalformedTokenError,
    InvalidSignatureError,
    ExpiredTokenError,
    MissingClaimError,
    IntegrationMismatchError,
    OriginNotAllowedError,
)
from .models import AccessTokenClaims, TenantContext
from .origins import OriginPolicy
from .tokens import TokenAuthenticator, create_access_token, parse_bearer_token

__all__ = [
    # Exceptions
    "MCPGatewayError",
    "ConfigurationError",
    "AuthenticationError",
    "MalformedTokenError",
    "InvalidSignatureError",
    "ExpiredTokenError",
    "MissingClaimError",
    "IntegrationMismatchError",
    "OriginNotAllowedError",
    # Models
    "AccessTokenClaims",
    "TenantContext",
    # Origins
    "OriginPolicy",
    # Tokens
    "TokenAuthenticator",
    "create_access_token",
    "parse_bearer_token",
]
