"""Static integration table config loader."""

from dataclasses import replace
from pathlib import Path
from typing import Mapping

import structlog
import yaml
from pydantic import BaseModel, Field

from .models import IntegrationSpec


logger = structlog.get_logger(__name__)


class RateLimitOverride(BaseModel):
    """Per-integration rate limit; a limit of 0 disables limiting."""

    limit: int = Field(..., ge=0)
    window_seconds: float | None = Field(default=None, gt=0)


class IntegrationConfig(BaseModel):
    """Integration overrides loaded from static config."""

    enabled: bool = True
    name: str | None = None
    version: str | None = None
    description: str | None = None
    credential_param: str | None = None
    rate_limit: RateLimitOverride | None = None


class IntegrationRegistryConfig(BaseModel):
    """Container for integration overrides keyed by route name."""

    integrations: dict[str, IntegrationConfig] = Field(default_factory=dict)


def load_integration_registry(config_path: str | None = None) -> IntegrationRegistryConfig:
    """Load integration config from YAML.

    Args:
        config_path: Optional custom path for the integration config.

    Returns:
        Parsed IntegrationRegistryConfig, or an empty config if the file is missing.
    """
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config" / "integrations.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        return IntegrationRegistryConfig()

    with config_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    return IntegrationRegistryConfig(**data)


def build_integration_specs(
    builtin: Mapping[str, IntegrationSpec],
    registry_config: IntegrationRegistryConfig,
) -> dict[str, IntegrationSpec]:
    """Apply config overrides to the built-in registration table.

    Config entries without a built-in adapter are ignored; integrations are
    never loaded from arbitrary modules.
    """
    specs = dict(builtin)

    for name, override in registry_config.integrations.items():
        spec = specs.get(name)
        if spec is None:
            logger.warning("Configured integration has no adapter", integration=name)
            continue

        changes: dict[str, object] = {"enabled": override.enabled}
        if override.name is not None:
            changes["display_name"] = override.name
        if override.version is not None:
            changes["version"] = override.version
        if override.description is not None:
            changes["description"] = override.description
        if override.credential_param is not None:
            changes["credential_param"] = override.credential_param
        if override.rate_limit is not None:
            changes["rate_limit"] = override.rate_limit.limit
            changes["rate_window_seconds"] = override.rate_limit.window_seconds

        specs[name] = replace(spec, **changes)

    return specs
