"""Registry REST operations on top of a TransportPort."""

from __future__ import annotations

from urllib.parse import quote

from ..domain.exceptions import DecodeError, NotRegisteredError, RegistryRequestError
from ..domain.models import InstanceRecord, RegistryDelta, RegistrySnapshot
from ..ports.clock import ClockPort
from ..ports.registry import RegistryPort
from ..ports.transport import TransportPort, TransportResponse
from . import registry_codec
from .system_clock import SystemClock

JSON_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}


class EurekaRegistryApi(RegistryPort):
    """RegistryPort speaking the registry's apps resource.

    Paths are relative to ``service_path``:

    - register: ``POST {APP}``
    - heartbeat: ``PUT {APP}/{instanceId}``
    - deregister: ``DELETE {APP}/{instanceId}``
    - full registry: ``GET`` on the apps root
    - delta: ``GET delta``
    """

    def __init__(
        self,
        transport: TransportPort,
        service_path: str = "/eureka/v2/apps/",
        clock: ClockPort | None = None,
    ):
        self._transport = transport
        self._service_path = "/" + service_path.strip("/") + "/"
        self._clock = clock or SystemClock()

    def _path(self, *segments: str) -> str:
        return self._service_path + "/".join(quote(segment, safe="") for segment in segments)

    async def _send(
        self, method: str, path: str, body: bytes | None = None
    ) -> TransportResponse:
        return await self._transport.send(method, path, headers=dict(JSON_HEADERS), body=body)

    async def register(self, instance: InstanceRecord) -> None:
        response = await self._send(
            "POST",
            self._path(instance.service_name),
            body=registry_codec.encode_registration(instance),
        )
        if not response.is_success:
            raise RegistryRequestError(response.status_code, "register", response.text())

    async def send_heartbeat(self, instance: InstanceRecord) -> None:
        response = await self._send(
            "PUT", self._path(instance.service_name, instance.instance_id)
        )
        if response.is_not_found:
            raise NotRegisteredError(instance.service_name, instance.instance_id)
        if not response.is_success:
            raise RegistryRequestError(response.status_code, "heartbeat", response.text())

    async def deregister(self, instance: InstanceRecord) -> None:
        response = await self._send(
            "DELETE", self._path(instance.service_name, instance.instance_id)
        )
        if not response.is_success:
            raise RegistryRequestError(response.status_code, "deregister", response.text())

    async def fetch_registry(self) -> tuple[RegistrySnapshot, list[DecodeError]]:
        response = await self._send("GET", self._service_path)
        if not response.is_success:
            raise RegistryRequestError(response.status_code, "fetch_registry", response.text())
        return registry_codec.decode_snapshot(response.body, fetched_at=self._clock.now())

    async def fetch_delta(self) -> tuple[RegistryDelta, list[DecodeError]]:
        response = await self._send("GET", self._path("delta"))
        if not response.is_success:
            raise RegistryRequestError(response.status_code, "fetch_delta", response.text())
        return registry_codec.decode_delta(response.body)
