"""Pydantic models for access token claims and tenant identity."""

from pydantic import BaseModel, ConfigDict, Field


class AccessTokenClaims(BaseModel):
    """Verified claim set carried by an access token.

    Attributes:
        integrationName: Integration the token is bound to.
        upstreamCredential: Opaque credential forwarded to the adapter.
        tenantId: Tenant on whose behalf the request is made.
        issuedAt: Issue time in epoch seconds.
        expiresAt: Expiry time in epoch seconds.
    """

    integrationName: str
    upstreamCredential: str
    tenantId: str
    issuedAt: float
    expiresAt: float

    model_config = ConfigDict(frozen=True, extra="allow")


class TenantContext(BaseModel):
    """Per-request identity derived from a verified access token.

    Immutable and never shared across requests.
    """

    tenant_id: str = Field(..., description="Tenant identifier")
    integration_name: str = Field(..., description="Integration the request is bound to")
    upstream_credential: str = Field(..., repr=False, description="Opaque upstream credential")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_claims(cls, claims: AccessTokenClaims) -> "TenantContext":
        return cls(
            tenant_id=claims.tenantId,
            integration_name=claims.integrationName,
            upstream_credential=claims.upstreamCredential,
        )
