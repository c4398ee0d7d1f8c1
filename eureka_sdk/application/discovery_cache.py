"""Discovery cache - local, periodically refreshed view of the registry.

One background task replaces the snapshot reference after every successful
fetch. Lookups read whatever snapshot is current without locking or
awaiting, so they never wait on the network. A failed refresh keeps the
previous snapshot in place.
"""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import AbstractContextManager
from typing import Any

from ..domain.exceptions import (
    AlreadyStoppedError,
    DecodeError,
    NoHealthyInstanceError,
    NotYetPopulatedError,
    RegistryRequestError,
)
from ..domain.models import Endpoint, InstanceRecord, RegistrySnapshot, normalize_service_name
from ..infrastructure.config import EurekaSettings
from ..ports.clock import ClockPort
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort
from ..ports.registry import RegistryPort
from ..ports.selector import InstanceSelector


class DiscoveryCache:
    """Eventually consistent registry cache with load-balanced lookups."""

    def __init__(
        self,
        registry: RegistryPort,
        settings: EurekaSettings,
        selector: InstanceSelector,
        clock: ClockPort,
        logger: LoggerPort | None = None,
        metrics: MetricsPort | None = None,
    ):
        self._registry = registry
        self._settings = settings
        self._selector = selector
        self._clock = clock
        self._logger = logger
        self._metrics = metrics

        self._snapshot: RegistrySnapshot | None = None
        self._populated = asyncio.Event()
        self._refresh_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._stopped = False

    @property
    def snapshot(self) -> RegistrySnapshot | None:
        """Current snapshot, None before the first successful fetch."""
        return self._snapshot

    @property
    def is_populated(self) -> bool:
        return self._snapshot is not None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the refresh loop; the first fetch happens immediately.

        Raises:
            AlreadyStoppedError: If the cache was stopped
        """
        if self._stopped:
            raise AlreadyStoppedError("DiscoveryCache")
        if self._task is not None:
            self._debug("Discovery cache already started")
            return
        if not self._settings.fetch_registry:
            self._info("Registry fetching disabled, discovery cache stays empty")
            return

        self._task = asyncio.create_task(self._run(), name="eureka-discovery-refresh")

    async def stop(self) -> None:
        """Stop the refresh loop. The last snapshot stays readable."""
        if self._stopped:
            return
        self._stopped = True
        self._stop_event.set()

        if self._task is None:
            return
        task, self._task = self._task, None
        if not task.done():
            await asyncio.wait({task}, timeout=self._settings.shutdown_timeout_ms / 1000)
        if not task.done():
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def refresh(self) -> bool:
        """Fetch the registry once and swap in the new snapshot.

        Concurrent calls are serialized. Failures are logged and counted.

        Returns:
            True if a new snapshot was installed
        """
        async with self._refresh_lock:
            current = self._snapshot
            try:
                with self._timed("discovery.refresh.latency_ms"):
                    if self._settings.fetch_delta and current is not None:
                        snapshot = await self._fetch_with_delta(current)
                    else:
                        snapshot = await self._fetch_full()
            except Exception as e:
                self._count("discovery.refresh.failure")
                self._warning(
                    "Registry refresh failed, keeping previous snapshot",
                    has_snapshot=current is not None,
                    error=str(e),
                )
                return False

            self._install(snapshot)
            return True

    def resolve(self, service_name: str) -> Endpoint:
        """Pick an UP instance of a service.

        Raises:
            NotYetPopulatedError: If no snapshot has been fetched yet
            NoHealthyInstanceError: If the service is unknown or has no UP instance
        """
        snapshot = self._require_snapshot(service_name)
        candidates = [i for i in snapshot.instances(service_name) if i.is_up()]
        return self._select(candidates, normalize_service_name(service_name), service_name)

    def resolve_vip(self, vip_address: str) -> Endpoint:
        """Pick an UP instance advertising a VIP address.

        Raises:
            NotYetPopulatedError: If no snapshot has been fetched yet
            NoHealthyInstanceError: If no UP instance advertises the address
        """
        snapshot = self._require_snapshot(vip_address)
        candidates = [i for i in snapshot.instances_by_vip(vip_address) if i.is_up()]
        return self._select(candidates, f"vip:{vip_address.strip().lower()}", vip_address)

    def instances(self, service_name: str) -> tuple[InstanceRecord, ...]:
        """Cached instances of a service, UP only when ``filter_up_instances`` is set.

        Raises:
            NotYetPopulatedError: If no snapshot has been fetched yet
        """
        instances = self._require_snapshot(service_name).instances(service_name)
        if self._settings.filter_up_instances:
            return tuple(i for i in instances if i.is_up())
        return instances

    async def wait_until_populated(self, timeout: float | None = None) -> bool:
        """Wait for the first snapshot.

        Args:
            timeout: Seconds to wait, None to wait forever

        Returns:
            True once populated, False on timeout
        """
        if self._snapshot is not None:
            return True
        try:
            await asyncio.wait_for(self._populated.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def resolve_when_ready(self, service_name: str, timeout: float | None = None) -> Endpoint:
        """Resolve once the first snapshot is available.

        Raises:
            NotYetPopulatedError: If the timeout expires first
            NoHealthyInstanceError: If the service has no UP instance
        """
        if not await self.wait_until_populated(timeout):
            raise NotYetPopulatedError(service_name)
        return self.resolve(service_name)

    async def _run(self) -> None:
        interval = self._settings.registry_fetch_interval_ms / 1000
        while not self._stop_event.is_set():
            await self.refresh()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except TimeoutError:
                continue

    async def _fetch_full(self) -> RegistrySnapshot:
        snapshot, rejected = await self._registry.fetch_registry()
        self._report_rejected(rejected)
        return snapshot

    async def _fetch_with_delta(self, current: RegistrySnapshot) -> RegistrySnapshot:
        try:
            delta, rejected = await self._registry.fetch_delta()
        except (DecodeError, RegistryRequestError) as e:
            self._info("Delta unusable, falling back to full fetch", error=str(e))
            return await self._fetch_full()

        if rejected:
            self._report_rejected(rejected)
            self._info("Delta contained rejected records, falling back to full fetch")
            return await self._fetch_full()

        candidate = current.apply_delta(
            delta.changes, fetched_at=self._clock.now(), version=delta.version
        )
        if delta.version is not None and candidate.compute_hashcode() != delta.version:
            self._count("discovery.refresh.delta_mismatch")
            self._info(
                "Delta hashcode mismatch, falling back to full fetch",
                expected=delta.version,
                actual=candidate.compute_hashcode(),
            )
            return await self._fetch_full()

        self._count("discovery.refresh.delta")
        return candidate

    def _install(self, snapshot: RegistrySnapshot) -> None:
        self._snapshot = snapshot
        self._populated.set()
        self._count("discovery.refresh.success")
        if self._metrics:
            self._metrics.gauge("discovery.services", len(snapshot.services))
        self._debug(
            "Registry snapshot refreshed",
            services=len(snapshot.services),
            instances=snapshot.instance_count(),
            version=snapshot.version,
        )

    def _report_rejected(self, rejected: list[DecodeError]) -> None:
        for error in rejected:
            self._count("discovery.decode.rejected")
            self._warning(
                "Skipping malformed instance record",
                instance=error.instance_id,
                error=error.message,
            )

    def _require_snapshot(self, target: str) -> RegistrySnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            self._count("discovery.resolve.miss")
            raise NotYetPopulatedError(target)
        return snapshot

    def _select(
        self, candidates: list[InstanceRecord], selector_key: str, target: str
    ) -> Endpoint:
        instance = self._selector.select(candidates, selector_key)
        if instance is None:
            self._count("discovery.resolve.miss")
            raise NoHealthyInstanceError(target)
        return Endpoint.from_instance(instance, prefer_ip_address=self._settings.prefer_ip_address)

    def _count(self, name: str) -> None:
        if self._metrics:
            self._metrics.increment(name)

    def _timed(self, name: str) -> AbstractContextManager[Any]:
        if self._metrics:
            return self._metrics.timer(name)
        return contextlib.nullcontext()

    def _debug(self, message: str, **fields) -> None:
        if self._logger:
            self._logger.debug(message, **fields)

    def _info(self, message: str, **fields) -> None:
        if self._logger:
            self._logger.info(message, **fields)

    def _warning(self, message: str, **fields) -> None:
        if self._logger:
            self._logger.warning(message, **fields)
