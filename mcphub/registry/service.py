"""Adapter registry with lazy, single-flight construction."""

import asyncio
import time
from pathlib import Path
from typing import Any, Iterable, Mapping

import structlog
from jsonschema import Draft7Validator

from .exceptions import AdapterConstructionError, AdapterNotFoundError, AdapterLoadError
from .models import AdapterBundle, AdapterRegistration, IntegrationSpec


logger = structlog.get_logger(__name__)

DEFAULT_CONSTRUCTION_TIMEOUT_SECONDS = 30.0


def _coerce_bundle(raw: Any) -> AdapterBundle:
    if isinstance(raw, AdapterBundle):
        return raw
    if isinstance(raw, Mapping):
        return AdapterBundle.model_validate(dict(raw))
    return AdapterBundle(
        toolDefinitions=getattr(raw, "toolDefinitions"),
        toolHandlers=getattr(raw, "toolHandlers"),
    )


def build_registration(spec: IntegrationSpec, raw: Any) -> AdapterRegistration:
    """Validate a factory's output and freeze it into a registration.

    Args:
        spec: Integration the output belongs to.
        raw: Whatever the factory returned.

    Returns:
        AdapterRegistration with one handler per defined tool.

    Raises:
        ValueError: Duplicate tool names or a tool without a handler.
        pydantic.ValidationError: Output does not have the adapter shape.
        jsonschema.SchemaError: A tool declares an invalid input schema.
    """
    bundle = _coerce_bundle(raw)

    handlers: dict[str, Any] = {}
    seen_names: set[str] = set()
    for tool in bundle.toolDefinitions:
        if tool.name in seen_names:
            raise ValueError(f"duplicate tool name: {tool.name}")
        seen_names.add(tool.name)

        handler = bundle.toolHandlers.get(tool.name)
        if not callable(handler):
            raise ValueError(f"no handler for tool: {tool.name}")
        Draft7Validator.check_schema(tool.inputSchema)
        handlers[tool.name] = handler

    orphaned = set(bundle.toolHandlers) - seen_names
    if orphaned:
        logger.warning(
            "Ignoring handlers without tool definitions",
            integration=spec.name,
            handlers=sorted(orphaned),
        )

    return AdapterRegistration(
        integration_name=spec.name,
        server_name=spec.display_name or spec.name,
        server_version=spec.version,
        tool_definitions=tuple(bundle.toolDefinitions),
        tool_handlers=handlers,
    )


class AdapterRegistry:
    """Resolves integration names to cached tool tables.

    Each integration is constructed at most once successfully. Concurrent
    first-time callers for the same name wait on a per-name lock for the
    single in-flight construction; unrelated integrations never contend.
    Failed constructions are not cached. A factory that outlives
    ``construction_timeout`` is cancelled and counts as a failure, so the
    lock is always released.
    """

    def __init__(
        self,
        specs: Mapping[str, IntegrationSpec],
        integrations_root: str = "servers",
        construction_timeout: float | None = DEFAULT_CONSTRUCTION_TIMEOUT_SECONDS,
    ) -> None:
        self._specs = dict(specs)
        self._root = Path(integrations_root)
        self._construction_timeout = construction_timeout
        self._registrations: dict[str, AdapterRegistration] = {}
        self._locks: dict[str, asyncio.Lock] = {name: asyncio.Lock() for name in self._specs}
        self._last_errors: dict[str, str] = {}

    def is_registered(self, integration_name: str) -> bool:
        spec = self._specs.get(integration_name)
        return spec is not None and spec.enabled

    def names(self) -> list[str]:
        return sorted(name for name, spec in self._specs.items() if spec.enabled)

    def get_spec(self, integration_name: str) -> IntegrationSpec:
        """Return the registration-table entry for an enabled integration.

        Raises:
            AdapterNotFoundError: If the name is unknown or disabled.
        """
        if not self.is_registered(integration_name):
            raise AdapterNotFoundError(integration_name)
        return self._specs[integration_name]

    async def resolve(self, integration_name: str) -> AdapterRegistration:
        """Return the integration's registration, constructing it on first use.

        Args:
            integration_name: Route segment naming the integration.

        Returns:
            The single canonical AdapterRegistration for the name.

        Raises:
            AdapterNotFoundError: Unknown or disabled name; nothing is constructed.
            AdapterConstructionError: The factory failed; the next call retries.
        """
        registration = self._registrations.get(integration_name)
        if registration is not None:
            return registration

        spec = self.get_spec(integration_name)

        async with self._locks[integration_name]:
            # Another caller may have finished while we waited.
            registration = self._registrations.get(integration_name)
            if registration is not None:
                return registration

            registration = await self._construct(spec)
            self._registrations[integration_name] = registration
            self._last_errors.pop(integration_name, None)
            return registration

    async def _construct(self, spec: IntegrationSpec) -> AdapterRegistration:
        start_time = time.perf_counter()
        integration_path = str(self._root / spec.name)
        logger.info("Constructing integration", integration=spec.name)

        try:
            raw = await asyncio.wait_for(
                spec.factory(integration_path, spec.credential_param),
                self._construction_timeout,
            )
            registration = build_registration(spec, raw)
        except Exception as e:
            if isinstance(e, asyncio.TimeoutError) and not str(e):
                reason = f"construction timed out after {self._construction_timeout}s"
            else:
                reason = str(e) or e.__class__.__name__
            self._last_errors[spec.name] = reason
            logger.error(
                "Integration construction failed",
                integration=spec.name,
                error=reason,
                exc_info=True,
            )
            raise AdapterConstructionError(spec.name, reason) from e

        logger.info(
            "Integration constructed",
            integration=spec.name,
            tool_count=len(registration.tool_definitions),
            duration_ms=int((time.perf_counter() - start_time) * 1000),
        )
        return registration

    def evict(self, integration_name: str) -> bool:
        """Drop a cached registration so the next resolve rebuilds it.

        Returns:
            True if a registration was removed, False if none was cached.
        """
        removed = self._registrations.pop(integration_name, None) is not None
        if removed:
            logger.info("Integration evicted", integration=integration_name)
        return removed

    async def warm_up(self, names: Iterable[str] | None = None) -> None:
        """Eagerly construct integrations; failures are logged and retried lazily."""
        for name in names if names is not None else self.names():
            try:
                await self.resolve(name)
            except AdapterLoadError as e:
                logger.warning("Integration warm-up failed", integration=name, error=e.message)

    def status(self) -> list[dict[str, Any]]:
        """Summarize every registered integration for status endpoints."""
        summary: list[dict[str, Any]] = []
        for name in sorted(self._specs):
            spec = self._specs[name]
            registration = self._registrations.get(name)
            if not spec.enabled:
                state = "disabled"
            elif registration is not None:
                state = "ready"
            elif name in self._last_errors:
                state = "failed"
            else:
                state = "not_loaded"

            summary.append({
                "name": name,
                "status": state,
                "serverName": spec.display_name or name,
                "version": spec.version,
                "description": spec.description,
                "toolCount": len(registration.tool_definitions) if registration else None,
                "loadedAt": registration.created_at.isoformat() if registration else None,
                "lastError": self._last_errors.get(name),
            })
        return summary
