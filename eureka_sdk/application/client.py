"""Client facade wiring registration and discovery together."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from ..domain.models import Endpoint, InstanceRecord, RegistrySnapshot
from ..domain.registration import RegistrationState
from ..infrastructure.config import (
    DEFAULT_CONFIG_FILENAME,
    ClientConfig,
    build_client_config,
    load_client_config,
)
from ..infrastructure.eureka_registry_api import EurekaRegistryApi
from ..infrastructure.http_transport import HttpxTransport
from ..infrastructure.in_memory_metrics import InMemoryMetrics
from ..infrastructure.selectors import create_selector
from ..infrastructure.simple_logger import SimpleLogger
from ..infrastructure.system_clock import SystemClock
from ..ports.clock import ClockPort
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort
from ..ports.registry import RegistryPort
from ..ports.selector import InstanceSelector
from ..ports.transport import TransportPort
from .discovery_cache import DiscoveryCache
from .registration_manager import RegistrationManager


class EurekaClient:
    """Registers the local instance and resolves other services.

    Example:
        async with EurekaClient.from_config_file() as client:
            endpoint = client.resolve("orders")
            ...

    Every collaborator can be injected; anything left out is built from the
    configuration. A transport created here is closed by ``stop()``.
    """

    def __init__(
        self,
        config: ClientConfig | dict[str, Any] | None = None,
        transport: TransportPort | None = None,
        logger: LoggerPort | None = None,
        metrics: MetricsPort | None = None,
        selector: InstanceSelector | None = None,
        clock: ClockPort | None = None,
        registry: RegistryPort | None = None,
    ):
        """Initialize the client.

        Args:
            config: Validated config or raw mapping
            transport: Transport to the registry (httpx by default)
            logger: Logger (SimpleLogger by default)
            metrics: Metrics collector (InMemoryMetrics by default)
            selector: Load-balancing policy (from ``load_balancing`` by default)
            clock: Clock (system UTC clock by default)
            registry: Registry operations, bypassing the transport entirely

        Raises:
            ConfigurationError: If the configuration is invalid or incomplete
        """
        self._config = build_client_config(config)
        settings = self._config.eureka

        self._logger = logger or SimpleLogger()
        self._metrics = metrics or InMemoryMetrics()
        clock = clock or SystemClock()

        self._transport: TransportPort | None = None
        if registry is None:
            self._transport = transport or HttpxTransport.from_settings(settings)
            registry = EurekaRegistryApi(self._transport, settings.service_path, clock)
        self._owns_transport = transport is None and self._transport is not None

        instance = (
            self._config.instance.to_instance_record() if settings.register_with_eureka else None
        )
        self._registration = RegistrationManager(
            instance, registry, settings, clock, logger=self._logger, metrics=self._metrics
        )
        self._discovery = DiscoveryCache(
            registry,
            settings,
            selector or create_selector(settings.load_balancing),
            clock,
            logger=self._logger,
            metrics=self._metrics,
        )

    @classmethod
    def from_config_file(
        cls,
        filename: str = DEFAULT_CONFIG_FILENAME,
        env: str | None = None,
        config_dir: str | Path = ".",
        overrides: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> EurekaClient:
        """Build a client from layered YAML configuration files."""
        config = load_client_config(
            filename=filename, env=env, overrides=overrides, config_dir=config_dir
        )
        return cls(config, **kwargs)

    async def __aenter__(self) -> EurekaClient:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def metrics(self) -> MetricsPort:
        return self._metrics

    @property
    def registration_state(self) -> RegistrationState:
        """Current state of the local instance's registration."""
        return self._registration.state

    @property
    def instance(self) -> InstanceRecord | None:
        """Local instance record, None when registration is disabled."""
        return self._registration.instance

    @property
    def snapshot(self) -> RegistrySnapshot | None:
        return self._discovery.snapshot

    async def start(self) -> None:
        """Start registration and discovery.

        Raises:
            AlreadyStoppedError: If the client was stopped
        """
        await asyncio.gather(self._registration.start(), self._discovery.start())

        settings = self._config.eureka
        if settings.wait_for_registry and settings.fetch_registry:
            timeout = settings.wait_for_registry_timeout_ms / 1000
            if not await self._discovery.wait_until_populated(timeout):
                self._logger.warning(
                    "Registry not fetched before startup timeout",
                    timeout_ms=settings.wait_for_registry_timeout_ms,
                )

    async def stop(self) -> None:
        """Stop both components, deregistering if needed, and release the transport."""
        try:
            await asyncio.gather(self._registration.stop(), self._discovery.stop())
        finally:
            if self._owns_transport and self._transport is not None:
                await self._transport.close()

    async def refresh(self) -> bool:
        """Fetch the registry now; True if a new snapshot was installed."""
        return await self._discovery.refresh()

    def resolve(self, service_name: str) -> Endpoint:
        """Pick an UP instance of ``service_name`` without blocking."""
        return self._discovery.resolve(service_name)

    def resolve_vip(self, vip_address: str) -> Endpoint:
        return self._discovery.resolve_vip(vip_address)

    def instances(self, service_name: str) -> tuple[InstanceRecord, ...]:
        return self._discovery.instances(service_name)

    async def resolve_when_ready(self, service_name: str, timeout: float | None = None) -> Endpoint:
        """Wait up to ``timeout`` seconds for the first snapshot, then resolve."""
        return await self._discovery.resolve_when_ready(service_name, timeout)
