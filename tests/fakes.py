"""In-memory test doubles for the registry and transport ports."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from eureka_sdk.domain.exceptions import DecodeError
from eureka_sdk.domain.models import InstanceRecord, RegistryDelta, RegistrySnapshot
from eureka_sdk.ports.clock import ClockPort
from eureka_sdk.ports.registry import RegistryPort
from eureka_sdk.ports.transport import TransportPort, TransportResponse


class FixedClock(ClockPort):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class FakeRegistry(RegistryPort):
    """Scriptable registry recording every call.

    Each ``*_outcomes`` deque holds exceptions (raised) or None (success)
    consumed one per call; an empty deque means success.
    """

    def __init__(self):
        self.calls: list[tuple[str, str]] = []
        self.register_outcomes: deque[Exception | None] = deque()
        self.heartbeat_outcomes: deque[Exception | None] = deque()
        self.deregister_outcomes: deque[Exception | None] = deque()
        self.snapshots: deque[tuple[RegistrySnapshot, list[DecodeError]] | Exception] = deque()
        self.deltas: deque[tuple[RegistryDelta, list[DecodeError]] | Exception] = deque()
        self.last_snapshot: tuple[RegistrySnapshot, list[DecodeError]] | None = None
        self.register_delay = 0.0

    def names(self) -> list[str]:
        """Names of the calls made so far, in order."""
        return [name for name, _ in self.calls]

    def count(self, name: str) -> int:
        return self.names().count(name)

    @staticmethod
    def _consume(outcomes: deque) -> None:
        if outcomes:
            outcome = outcomes.popleft()
            if outcome is not None:
                raise outcome

    async def register(self, instance: InstanceRecord) -> None:
        self.calls.append(("register", instance.instance_id))
        if self.register_delay:
            await asyncio.sleep(self.register_delay)
        self._consume(self.register_outcomes)

    async def send_heartbeat(self, instance: InstanceRecord) -> None:
        self.calls.append(("heartbeat", instance.instance_id))
        self._consume(self.heartbeat_outcomes)

    async def deregister(self, instance: InstanceRecord) -> None:
        self.calls.append(("deregister", instance.instance_id))
        self._consume(self.deregister_outcomes)

    async def fetch_registry(self) -> tuple[RegistrySnapshot, list[DecodeError]]:
        self.calls.append(("fetch_registry", ""))
        if self.snapshots:
            outcome = self.snapshots.popleft()
            if isinstance(outcome, Exception):
                raise outcome
            self.last_snapshot = outcome
        if self.last_snapshot is None:
            raise AssertionError("FakeRegistry has no snapshot scripted")
        return self.last_snapshot

    async def fetch_delta(self) -> tuple[RegistryDelta, list[DecodeError]]:
        self.calls.append(("fetch_delta", ""))
        if not self.deltas:
            return RegistryDelta(), []
        outcome = self.deltas.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeTransport(TransportPort):
    """Transport returning queued responses and recording requests."""

    def __init__(self, *responses: TransportResponse | Exception):
        self.responses: deque[TransportResponse | Exception] = deque(responses)
        self.requests: list[dict] = []
        self.closed = False

    async def send(
        self,
        method: str,
        path: str,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> TransportResponse:
        self.requests.append({"method": method, "path": path, "headers": headers, "body": body})
        if not self.responses:
            return TransportResponse(status_code=200)
        response = self.responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` until it holds, failing the test after ``timeout``."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.005)
