"""Access token verification and minting."""

import time
from typing import TYPE_CHECKING, Any, Callable, Mapping

import structlog
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    ExpiredTokenError,
    IntegrationMismatchError,
    InvalidSignatureError,
    MalformedTokenError,
    MissingClaimError,
)
from .models import AccessTokenClaims, TenantContext

if TYPE_CHECKING:
    from ..config import GatewayConfig


logger = structlog.get_logger(__name__)

INTEGRATION_CLAIM = "integrationName"
CREDENTIAL_CLAIM = "upstreamCredential"
TENANT_CLAIM = "tenantId"
ISSUED_AT_CLAIM = "issuedAt"
EXPIRES_AT_CLAIM = "expiresAt"

BUSINESS_CLAIMS = (INTEGRATION_CLAIM, CREDENTIAL_CLAIM, TENANT_CLAIM)


def _coerce_timestamp(value: object, name: str) -> float:
    # bool is an int subclass; a boolean timestamp is never valid.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedTokenError(f"Access token has non-numeric '{name}' claim")
    return float(value)


def _require_string_claim(payload: Mapping[str, Any], name: str) -> str:
    value = payload.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingClaimError(name)
    if not isinstance(value, str):
        raise MalformedTokenError(f"Access token has non-string '{name}' claim")
    return value


def parse_bearer_token(authorization: str | None) -> str:
    """Extract the token from an Authorization header value.

    Args:
        authorization: Header value (format: 'Bearer <token>').

    Returns:
        The raw token string.

    Raises:
        MalformedTokenError: If the header is missing or malformed.
    """
    if not authorization:
        raise MalformedTokenError("Missing Authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise MalformedTokenError("Invalid Authorization header format. Expected: 'Bearer <token>'")

    return parts[1]


class TokenAuthenticator:
    """Verifies signed access tokens and binds a TenantContext.

    The signing secret is fixed for the lifetime of the instance.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        allowed_algorithms: tuple[str, ...] | None = None,
        clock_skew_seconds: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret or not secret.strip():
            raise ConfigurationError("Token signing secret must not be blank")
        self._secret = secret
        self._algorithm = algorithm.upper()
        self._allowed_algorithms = list(allowed_algorithms or (self._algorithm,))
        self._clock_skew = max(0, int(clock_skew_seconds))
        self._clock = clock

    @classmethod
    def from_config(cls, config: "GatewayConfig") -> "TokenAuthenticator":
        return cls(
            secret=config.signing_secret,
            algorithm=config.algorithm,
            allowed_algorithms=config.allowed_algorithms,
            clock_skew_seconds=config.clock_skew_seconds,
        )

    def verify(self, raw_token: str) -> TenantContext:
        """Verify a raw token and return the tenant context it grants.

        Expiry is checked before the signature so that an expired token is
        always reported as expired.

        Raises:
            MalformedTokenError: Token or timestamps cannot be parsed.
            ExpiredTokenError: ``expiresAt`` is in the past.
            InvalidSignatureError: Signature or algorithm check failed.
            MissingClaimError: A required claim is absent or blank.
        """
        if not raw_token or not raw_token.strip():
            raise MalformedTokenError("Empty access token")

        try:
            unverified = jwt.get_unverified_claims(raw_token)
        except JWTError as e:
            raise MalformedTokenError(f"Malformed access token: {e}") from e

        now = self._clock()
        expires_raw = unverified.get(EXPIRES_AT_CLAIM)
        if expires_raw is not None:
            expires_at = _coerce_timestamp(expires_raw, EXPIRES_AT_CLAIM)
            if now - self._clock_skew >= expires_at:
                raise ExpiredTokenError()

        try:
            payload = jwt.decode(
                raw_token,
                self._secret,
                algorithms=self._allowed_algorithms,
                options={
                    "verify_signature": True,
                    "verify_aud": False,
                    "leeway": self._clock_skew,
                },
            )
        except ExpiredSignatureError as e:
            raise ExpiredTokenError() from e
        except JWTError as e:
            raise InvalidSignatureError(f"Invalid access token: {e}") from e

        for claim in BUSINESS_CLAIMS:
            _require_string_claim(payload, claim)

        for claim in (ISSUED_AT_CLAIM, EXPIRES_AT_CLAIM):
            if payload.get(claim) is None:
                raise MissingClaimError(claim)

        issued_at = _coerce_timestamp(payload[ISSUED_AT_CLAIM], ISSUED_AT_CLAIM)
        expires_at = _coerce_timestamp(payload[EXPIRES_AT_CLAIM], EXPIRES_AT_CLAIM)
        if expires_at <= issued_at:
            raise MalformedTokenError("Access token 'expiresAt' must be later than 'issuedAt'")
        if issued_at > now + self._clock_skew:
            raise MalformedTokenError("Access token 'issuedAt' is in the future")

        claims = AccessTokenClaims(**payload)
        return TenantContext.from_claims(claims)

    def authenticate(self, authorization: str | None, route_integration: str) -> TenantContext:
        """Verify the bearer token and bind it to the routed integration.

        A token issued for another integration is rejected; the route never
        dispatches to an integration other than the one named in the path.

        Raises:
            AuthenticationError: Any header, token or binding failure.
        """
        try:
            tenant = self.verify(parse_bearer_token(authorization))
            if tenant.integration_name != route_integration:
                raise IntegrationMismatchError(tenant.integration_name, route_integration)
        except AuthenticationError as e:
            logger.info(
                "Access token rejected",
                integration=route_integration,
                reason=e.code,
            )
            raise
        return tenant


def create_access_token(
    secret: str,
    integration_name: str,
    upstream_credential: str,
    tenant_id: str,
    expires_in_seconds: int = 3600,
    issued_at: float | None = None,
    algorithm: str = "HS256",
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Mint an access token (for tests and local tooling).

    Args:
        secret: HMAC signing secret.
        integration_name: Integration the token is bound to.
        upstream_credential: Credential forwarded to the adapter.
        tenant_id: Tenant identifier.
        expires_in_seconds: Lifetime relative to ``issued_at``.
        issued_at: Issue time in epoch seconds (defaults to now).
        algorithm: HMAC algorithm.
        extra_claims: Additional claims merged into the payload.

    Returns:
        Encoded token string.
    """
    issued = int(issued_at if issued_at is not None else time.time())
    payload: dict[str, Any] = {
        INTEGRATION_CLAIM: integration_name,
        CREDENTIAL_CLAIM: upstream_credential,
        TENANT_CLAIM: tenant_id,
        ISSUED_AT_CLAIM: issued,
        EXPIRES_AT_CLAIM: issued + expires_in_seconds,
    }
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, secret, algorithm=algorithm)
