"""Registration manager - keeps the local instance registered.

The manager drives the ``RegistrationState`` machine from a single asyncio
task: register with backoff until it succeeds, then heartbeat on a fixed
interval, falling back to registering whenever the registry reports that it
lost the instance. Failures are logged and counted, never raised.
"""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import AbstractContextManager
from typing import Any

from ..domain.enums import RegistrationPhase
from ..domain.exceptions import AlreadyStoppedError, ConfigurationError, NotRegisteredError
from ..domain.models import InstanceRecord
from ..domain.registration import RegistrationState
from ..infrastructure.config import EurekaSettings
from ..ports.clock import ClockPort
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort
from ..ports.registry import RegistryPort


class RegistrationManager:
    """Owns the registration lifecycle of one local instance."""

    def __init__(
        self,
        instance: InstanceRecord | None,
        registry: RegistryPort,
        settings: EurekaSettings,
        clock: ClockPort,
        logger: LoggerPort | None = None,
        metrics: MetricsPort | None = None,
    ):
        """Initialize the manager.

        Args:
            instance: Record to register; may be None when registration is disabled
            registry: Registry operations
            settings: Intervals, retry policy and timeouts
            clock: Source of heartbeat timestamps
            logger: Optional logger for transitions and failures
            metrics: Optional metrics for transitions and failures

        Raises:
            ConfigurationError: If registration is enabled without an instance
        """
        if settings.register_with_eureka and instance is None:
            raise ConfigurationError("Registration is enabled but no instance was configured")

        self._instance = instance
        self._registry = registry
        self._settings = settings
        self._clock = clock
        self._logger = logger
        self._metrics = metrics

        self._state = RegistrationState()
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._stop_lock = asyncio.Lock()
        self._holds_registration = False

    @property
    def state(self) -> RegistrationState:
        """Current registration state."""
        return self._state

    @property
    def instance(self) -> InstanceRecord | None:
        """Local record, carrying the last successful heartbeat timestamp."""
        return self._instance

    @property
    def holds_registration(self) -> bool:
        """True while the registry is believed to hold our registration."""
        return self._holds_registration

    async def start(self) -> None:
        """Start registering, or enter OBSERVING when registration is disabled.

        Raises:
            AlreadyStoppedError: If the manager was stopped
        """
        phase = self._state.phase
        if phase in (RegistrationPhase.STOPPED, RegistrationPhase.DEREGISTERING):
            raise AlreadyStoppedError("RegistrationManager")
        if phase != RegistrationPhase.UNREGISTERED:
            self._debug("Registration manager already started", state=str(self._state))
            return

        self._transition(self._state.start(register=self._settings.register_with_eureka))
        if self._state.phase == RegistrationPhase.REGISTERING:
            self._task = asyncio.create_task(
                self._run(), name=f"eureka-registration-{self._service}"
            )

    async def stop(self) -> None:
        """Stop heartbeating and deregister if the registry holds our record.

        Bounded by ``shutdown_timeout_ms``; always ends in STOPPED.
        """
        async with self._stop_lock:
            if self._state.phase == RegistrationPhase.STOPPED:
                return

            loop = asyncio.get_running_loop()
            deadline = loop.time() + self._settings.shutdown_timeout_ms / 1000
            self._stop_event.set()
            await self._stop_task(deadline - loop.time())

            if self._state.is_active:
                self._transition(self._state.stopping())
                if self._holds_registration:
                    await self._deregister_before(deadline)

            self._transition(self._state.stopped())

    async def _stop_task(self, grace: float) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        if not task.done():
            await asyncio.wait({task}, timeout=max(grace, 0.0))
        if not task.done():
            self._warning("Registration call still in flight at shutdown, cancelling")
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _deregister_before(self, deadline: float) -> None:
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            self._warning("No time left to deregister before shutdown timeout")
            return
        try:
            await asyncio.wait_for(self._deregister_with_retries(), timeout=remaining)
        except TimeoutError:
            self._warning("Deregistration timed out")

    async def _deregister_with_retries(self) -> None:
        retry_delay = self._settings.request_retry_delay_ms / 1000
        for attempt in range(1, self._settings.max_retries + 1):
            try:
                await self._registry.deregister(self._instance)
            except Exception as e:
                self._count("registration.deregister.failure")
                self._warning("Deregistration failed", attempt=attempt, error=str(e))
                if attempt < self._settings.max_retries:
                    await asyncio.sleep(retry_delay)
                continue
            self._holds_registration = False
            self._info("Instance deregistered")
            return

    async def _run(self) -> None:
        interval = self._settings.heartbeat_interval_ms / 1000
        while not self._stop_event.is_set():
            try:
                if self._state.phase == RegistrationPhase.REGISTERING:
                    await self._register_until_success()
                elif await self._wait(interval):
                    break
                else:
                    await self._heartbeat()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._count("registration.loop.error")
                if self._logger:
                    self._logger.exception(
                        "Registration loop iteration failed, continuing",
                        exc_info=e,
                        **self._fields({"state": str(self._state)}),
                    )
                if await self._wait(interval):
                    break

    async def _register_until_success(self) -> None:
        backoff = self._settings.registration_retry_backoff
        attempt = 0
        while not self._stop_event.is_set():
            try:
                await self._registry.register(self._instance)
            except Exception as e:
                attempt += 1
                self._count("registration.register.failure")
                delay = backoff.delay_seconds(attempt)
                self._warning(
                    "Registration failed, retrying",
                    attempt=attempt,
                    retry_in_ms=round(delay * 1000),
                    error=str(e),
                )
                if await self._wait(delay):
                    return
                continue

            self._holds_registration = True
            self._transition(self._state.registered())
            return

    async def _heartbeat(self) -> None:
        try:
            with self._timed("registration.heartbeat.latency_ms"):
                await self._registry.send_heartbeat(self._instance)
        except NotRegisteredError:
            self._holds_registration = False
            self._count("registration.heartbeat.not_found")
            self._warning("Registry does not know this instance, re-registering")
            self._transition(self._state.instance_not_found())
            return
        except Exception as e:
            self._count("registration.heartbeat.failure")
            self._transition(self._state.heartbeat_failed())
            failures = self._state.consecutive_failures
            if failures >= self._settings.heartbeat_failure_threshold:
                self._count("registration.heartbeat.threshold_exceeded")
                self._warning(
                    "Heartbeat failure threshold reached, still retrying",
                    consecutive_failures=failures,
                    error=str(e),
                )
            else:
                self._warning("Heartbeat failed", consecutive_failures=failures, error=str(e))
            return

        self._instance = self._instance.with_heartbeat(self._clock.now_ms())
        self._count("registration.heartbeat.success")
        self._debug("Heartbeat sent")
        self._transition(self._state.heartbeat_succeeded())

    async def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; True if stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except TimeoutError:
            return False
        return True

    def _transition(self, new_state: RegistrationState) -> None:
        old_state, self._state = self._state, new_state
        if old_state == new_state:
            return
        if old_state.phase != new_state.phase:
            self._count(f"registration.state.{new_state.phase.value.lower()}")
        self._info(
            "Registration state changed",
            old_state=str(old_state),
            new_state=str(new_state),
        )

    @property
    def _service(self) -> str:
        return self._instance.service_name if self._instance else "-"

    def _fields(self, fields: dict) -> dict:
        fields.setdefault("service", self._service)
        if self._instance is not None:
            fields.setdefault("instance", self._instance.instance_id)
        return fields

    def _count(self, name: str) -> None:
        if self._metrics:
            self._metrics.increment(name)

    def _timed(self, name: str) -> AbstractContextManager[Any]:
        if self._metrics:
            return self._metrics.timer(name)
        return contextlib.nullcontext()

    def _debug(self, message: str, **fields) -> None:
        if self._logger:
            self._logger.debug(message, **self._fields(fields))

    def _info(self, message: str, **fields) -> None:
        if self._logger:
            self._logger.info(message, **self._fields(fields))

    def _warning(self, message: str, **fields) -> None:
        if self._logger:
            self._logger.warning(message, **self._fields(fields))
