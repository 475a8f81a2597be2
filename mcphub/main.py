from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Mapping

import httpx
import structlog
import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .adapters import builtin_adapters
from .auth.origins import OriginPolicy
from .auth.tokens import TokenAuthenticator
from .config import GatewayConfig, Settings, get_settings
from .dependencies import get_gateway_config, get_metrics, get_registry
from .log_config import setup_logging
from .mcp_transport.router import router as mcp_router
from .mcp_transport.service import ProtocolDispatcher
from .metrics import CONTENT_TYPE_LATEST, GatewayMetrics
from .ratelimit import RateLimitConfig, RateLimiter
from .registry import AdapterRegistry, IntegrationSpec, build_integration_specs, load_integration_registry


logger = structlog.get_logger(__name__)


def build_rate_limiter(config: GatewayConfig, specs: Mapping[str, IntegrationSpec]) -> RateLimiter | None:
    """Create the limiter with per-integration overrides, or None when disabled."""
    if not config.rate_limit_enabled:
        return None

    limiter = RateLimiter(
        default_config=RateLimitConfig(
            limit=config.rate_limit_default_limit,
            window_seconds=config.rate_limit_window_seconds,
        ),
        max_buckets=config.rate_limit_max_buckets,
    )
    for name, spec in specs.items():
        if spec.rate_limit is not None:
            limiter.set_limit(name, spec.rate_limit, spec.rate_window_seconds)
    return limiter


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: GatewayConfig = app.state.gateway_config
    logger.info(
        "Gateway starting",
        app=config.app_name,
        version=config.app_version,
        integrations=app.state.registry.names(),
    )

    if config.warm_up_adapters:
        await app.state.registry.warm_up()

    yield

    # Shutdown: close the shared upstream HTTP client
    await app.state.http_client.aclose()


def create_app(
    settings: Settings | None = None,
    adapters: Mapping[str, IntegrationSpec] | None = None,
) -> FastAPI:
    """Build the gateway application.

    Args:
        settings: Settings to use instead of the environment.
        adapters: Registration table to use instead of the built-in adapters.

    Raises:
        ConfigurationError: If the token secret is missing or unusable.
    """
    settings = settings or get_settings()
    config = GatewayConfig.from_settings(settings)
    setup_logging(config.log_level, config.log_json)

    # timeout=None removes the global default; adapters pass per-request timeouts
    http_client = httpx.AsyncClient(timeout=None)

    builtin = adapters if adapters is not None else builtin_adapters(http_client)
    specs = build_integration_specs(builtin, load_integration_registry(config.integrations_config_path))

    registry = AdapterRegistry(
        specs,
        integrations_root=config.integrations_root,
        construction_timeout=config.adapter_construction_timeout_seconds,
    )
    rate_limiter = build_rate_limiter(config, specs)
    origin_policy = OriginPolicy(config.allowed_origins)
    metrics = GatewayMetrics() if config.metrics_enabled else None
    dispatcher = ProtocolDispatcher(
        authenticator=TokenAuthenticator.from_config(config),
        registry=registry,
        rate_limiter=rate_limiter,
        tool_timeout=config.tool_call_timeout_seconds,
        origin_policy=origin_policy,
        max_request_bytes=config.max_request_bytes,
        metrics=metrics,
    )

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        lifespan=lifespan,
        debug=settings.DEBUG,
    )
    app.state.gateway_config = config
    app.state.http_client = http_client
    app.state.registry = registry
    app.state.rate_limiter = rate_limiter
    app.state.dispatcher = dispatcher
    app.state.metrics = metrics

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if origin_policy.allow_all else [],
        allow_origin_regex=origin_policy.pattern,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Mcp-Session-Id", "Mcp-Protocol-Version"],
    )

    @app.get("/health")
    async def health_check(
        registry: Annotated[AdapterRegistry, Depends(get_registry)],
        config: Annotated[GatewayConfig, Depends(get_gateway_config)],
    ):
        return {
            "status": "healthy",
            "app": config.app_name,
            "version": config.app_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "transport": "streamable-http",
            "auth_type": "jwt",
            "servers": [
                {"name": entry["name"], "status": entry["status"]}
                for entry in registry.status()
            ],
        }

    @app.get("/servers")
    async def list_servers(registry: Annotated[AdapterRegistry, Depends(get_registry)]):
        return {"servers": registry.status()}

    @app.get("/metrics")
    async def metrics_endpoint(metrics: Annotated[GatewayMetrics | None, Depends(get_metrics)]):
        """Prometheus metrics endpoint."""
        if metrics is None:
            raise HTTPException(status_code=404, detail="Metrics are disabled")
        return Response(content=metrics.render(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(mcp_router)
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "mcphub.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
    )
