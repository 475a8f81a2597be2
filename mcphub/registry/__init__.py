"""Registry module - Integration table and lazy adapter resolution."""

from .models import (
    AdapterBundle,
    AdapterFactory,
    AdapterRegistration,
    IntegrationSpec,
    ToolDefinition,
    ToolHandler,
)
from .exceptions import AdapterLoadError, AdapterNotFoundError, AdapterConstructionError
from .config import load_integration_registry, build_integration_specs
from .service import AdapterRegistry, build_registration


__all__ = [
    "AdapterBundle",
    "AdapterFactory",
    "AdapterRegistration",
    "IntegrationSpec",
    "ToolDefinition",
    "ToolHandler",
    "AdapterLoadError",
    "AdapterNotFoundError",
    "AdapterConstructionError",
    "load_integration_registry",
    "build_integration_specs",
    "AdapterRegistry",
    "build_registration",
]
