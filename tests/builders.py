"""Test builders for registry records and wire documents.

Builders give tests a fluent way to describe instances while keeping the
defaults in one place.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from eureka_sdk.domain.enums import InstanceStatus
from eureka_sdk.domain.models import InstanceRecord, RegistrySnapshot
from eureka_sdk.infrastructure.registry_codec import encode_instance

FETCHED_AT = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


class InstanceRecordBuilder:
    """Builder for InstanceRecord objects in tests."""

    def __init__(self):
        self._service_name = "ORDERS"
        self._instance_id: str | None = None
        self._ip_address = "10.0.0.1"
        self._host_name = ""
        self._port = 8080
        self._secure = False
        self._status = InstanceStatus.UP
        self._metadata: dict[str, str] = {}
        self._vip_address = ""
        self._heartbeat: int | None = None

    def with_service(self, service_name: str) -> InstanceRecordBuilder:
        self._service_name = service_name
        return self

    def with_id(self, instance_id: str) -> InstanceRecordBuilder:
        self._instance_id = instance_id
        return self

    def with_ip(self, ip_address: str) -> InstanceRecordBuilder:
        self._ip_address = ip_address
        return self

    def with_host_name(self, host_name: str) -> InstanceRecordBuilder:
        self._host_name = host_name
        return self

    def with_port(self, port: int, secure: bool = False) -> InstanceRecordBuilder:
        self._port = port
        self._secure = secure
        return self

    def with_status(self, status: InstanceStatus) -> InstanceRecordBuilder:
        self._status = status
        return self

    def with_metadata(self, **metadata: str) -> InstanceRecordBuilder:
        self._metadata = metadata
        return self

    def with_vip(self, vip_address: str) -> InstanceRecordBuilder:
        self._vip_address = vip_address
        return self

    def with_heartbeat(self, timestamp_ms: int) -> InstanceRecordBuilder:
        self._heartbeat = timestamp_ms
        return self

    def down(self) -> InstanceRecordBuilder:
        return self.with_status(InstanceStatus.DOWN)

    def build(self) -> InstanceRecord:
        instance_id = self._instance_id or (
            f"{self._ip_address}:{self._service_name.lower()}:{self._port}"
        )
        return InstanceRecord(
            service_name=self._service_name,
            instance_id=instance_id,
            ip_address=self._ip_address,
            host_name=self._host_name,
            port=self._port,
            is_secure_port=self._secure,
            status=self._status,
            metadata=self._metadata,
            vip_address=self._vip_address,
            last_heartbeat_timestamp=self._heartbeat,
        )


def an_instance(instance_id: str, service: str = "ORDERS", **kwargs: Any) -> InstanceRecord:
    """Shorthand for an UP instance with a given id."""
    builder = InstanceRecordBuilder().with_service(service).with_id(instance_id)
    if "status" in kwargs:
        builder.with_status(kwargs.pop("status"))
    if "ip" in kwargs:
        builder.with_ip(kwargs.pop("ip"))
    if kwargs:
        raise TypeError(f"Unexpected arguments: {sorted(kwargs)}")
    return builder.build()


def a_snapshot(*instances: InstanceRecord, version: str | None = None) -> RegistrySnapshot:
    return RegistrySnapshot.from_instances(instances, fetched_at=FETCHED_AT, version=version)


def registry_document(
    *instances: InstanceRecord | dict[str, Any],
    hashcode: str | None = None,
    delta_actions: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build a full-registry (or delta) JSON document.

    Args:
        instances: Records to encode, or raw instance dicts used verbatim
        hashcode: Value of ``apps__hashcode``
        delta_actions: ``instance_id -> actionType`` for delta documents
    """
    applications: dict[str, list[dict[str, Any]]] = {}
    for item in instances:
        if isinstance(item, InstanceRecord):
            document = encode_instance(item)
            if delta_actions and item.instance_id in delta_actions:
                document["actionType"] = delta_actions[item.instance_id]
        else:
            document = dict(item)
        applications.setdefault(str(document.get("app", "UNKNOWN")), []).append(document)

    payload: dict[str, Any] = {
        "versions__delta": "1",
        "application": [
            {"name": name, "instance": documents} for name, documents in applications.items()
        ],
    }
    if hashcode is not None:
        payload["apps__hashcode"] = hashcode
    return {"applications": payload}
