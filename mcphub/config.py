from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from .auth.exceptions import ConfigurationError


class Settings(BaseSettings):
    # App
    APP_NAME: str = "MCP Hub"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Security
    # No default on purpose: a blank secret refuses to start.
    TOKEN_SIGNING_SECRET: str = ""
    TOKEN_ALGORITHM: str = "HS256"
    TOKEN_ALLOWED_ALGORITHMS: str = "HS256"
    TOKEN_CLOCK_SKEW_SECONDS: int = 0
    # Host names match any scheme and port; "*" allows every origin
    ALLOWED_ORIGINS: str = "localhost,127.0.0.1"

    # Integrations
    INTEGRATIONS_CONFIG_PATH: str = ""
    INTEGRATIONS_ROOT: str = "servers"
    WARM_UP_ADAPTERS: bool = False
    ADAPTER_CONSTRUCTION_TIMEOUT_SECONDS: float = 30.0
    TOOL_CALL_TIMEOUT_SECONDS: float = 60.0
    DISCONNECT_POLL_SECONDS: float = 0.5
    MAX_REQUEST_BYTES: int = 50 * 1024 * 1024

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT_LIMIT: int = 1000
    RATE_LIMIT_WINDOW_SECONDS: float = 60.0
    RATE_LIMIT_MAX_BUCKETS: int = 10000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Metrics
    METRICS_ENABLED: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def _parse_csv_list(raw: str) -> tuple[str, ...]:
    return tuple(item.strip().upper() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class GatewayConfig:
    """Immutable runtime configuration built once at process start.

    Components receive this object explicitly; nothing reads the environment
    after startup.
    """

    app_name: str
    app_version: str
    signing_secret: str
    algorithm: str
    allowed_algorithms: tuple[str, ...]
    clock_skew_seconds: int
    allowed_origins: tuple[str, ...]
    integrations_config_path: str | None
    integrations_root: str
    warm_up_adapters: bool
    adapter_construction_timeout_seconds: float
    tool_call_timeout_seconds: float
    disconnect_poll_seconds: float
    max_request_bytes: int | None
    rate_limit_enabled: bool
    rate_limit_default_limit: int
    rate_limit_window_seconds: float
    rate_limit_max_buckets: int
    log_level: str
    log_json: bool
    metrics_enabled: bool

    @classmethod
    def from_settings(cls, settings: Settings) -> "GatewayConfig":
        """Validate settings and freeze them.

        Raises:
            ConfigurationError: If the signing secret is missing or the
                algorithm configuration is unusable.
        """
        secret = settings.TOKEN_SIGNING_SECRET
        if not secret or not secret.strip():
            raise ConfigurationError("TOKEN_SIGNING_SECRET must be set; refusing to start")

        algorithm = settings.TOKEN_ALGORITHM.upper()
        allowed = _parse_csv_list(settings.TOKEN_ALLOWED_ALGORITHMS)
        if not allowed or "NONE" in allowed:
            raise ConfigurationError("TOKEN_ALLOWED_ALGORITHMS misconfigured")
        if not all(item.startswith("HS") for item in allowed):
            raise ConfigurationError("Only HMAC (HS*) token algorithms are supported")
        if algorithm not in allowed:
            raise ConfigurationError("TOKEN_ALGORITHM not in allowed list")

        return cls(
            app_name=settings.APP_NAME,
            app_version=settings.APP_VERSION,
            signing_secret=secret,
            algorithm=algorithm,
            allowed_algorithms=allowed,
            clock_skew_seconds=max(0, settings.TOKEN_CLOCK_SKEW_SECONDS),
            allowed_origins=tuple(o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()),
            integrations_config_path=settings.INTEGRATIONS_CONFIG_PATH or None,
            integrations_root=settings.INTEGRATIONS_ROOT,
            warm_up_adapters=settings.WARM_UP_ADAPTERS,
            adapter_construction_timeout_seconds=settings.ADAPTER_CONSTRUCTION_TIMEOUT_SECONDS,
            tool_call_timeout_seconds=settings.TOOL_CALL_TIMEOUT_SECONDS,
            disconnect_poll_seconds=settings.DISCONNECT_POLL_SECONDS,
            max_request_bytes=settings.MAX_REQUEST_BYTES if settings.MAX_REQUEST_BYTES > 0 else None,
            rate_limit_enabled=settings.RATE_LIMIT_ENABLED,
            rate_limit_default_limit=settings.RATE_LIMIT_DEFAULT_LIMIT,
            rate_limit_window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            rate_limit_max_buckets=settings.RATE_LIMIT_MAX_BUCKETS,
            log_level=settings.LOG_LEVEL,
            log_json=settings.LOG_JSON,
            metrics_enabled=settings.METRICS_ENABLED,
        )
