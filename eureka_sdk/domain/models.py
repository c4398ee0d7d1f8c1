"""Domain models using Pydantic for validation."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import ActionType, InstanceStatus


def derive_instance_id(host: str, service_name: str, port: int) -> str:
    """Build the stable instance identifier used when none is configured."""
    return f"{host}:{service_name.lower()}:{port}"


def normalize_service_name(service_name: str) -> str:
    """Registry application names are upper case."""
    return service_name.strip().upper()


def _vip_set(instance: "InstanceRecord") -> set[str]:
    addresses = f"{instance.vip_address},{instance.secure_vip_address}"
    return {v.strip().lower() for v in addresses.split(",") if v.strip()}


class InstanceRecord(BaseModel):
    """One running process of a named service, as known to the registry.

    Records are immutable: ``instance_id`` is the idempotency key for every
    register, heartbeat and deregister call, and updates produce a new record
    through ``model_copy``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    service_name: str = Field(..., min_length=1, description="Application name")
    instance_id: str = Field(..., min_length=1, description="Stable instance identifier")
    ip_address: str = Field(..., min_length=1, description="Advertised IP address")
    port: int = Field(..., ge=0, le=65535, description="Active port")
    is_secure_port: bool = Field(default=False, description="Whether port is the secure port")
    status: InstanceStatus = Field(default=InstanceStatus.UNKNOWN)
    last_heartbeat_timestamp: int | None = Field(
        default=None, ge=0, description="Last successful renewal, epoch milliseconds"
    )
    metadata: dict[str, str] = Field(default_factory=dict)

    host_name: str = Field(default="")
    vip_address: str = Field(default="")
    secure_vip_address: str = Field(default="")
    home_page_url: str = Field(default="")
    status_page_url: str = Field(default="")
    health_check_url: str = Field(default="")
    lease_duration_secs: int | None = Field(default=None, gt=0)

    @field_validator("service_name")
    @classmethod
    def validate_service_name(cls, v: str) -> str:
        """Normalize the application name."""
        return normalize_service_name(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: object) -> InstanceStatus:
        """Unrecognized statuses become UNKNOWN."""
        return InstanceStatus.parse(v)

    def is_up(self) -> bool:
        """Check if the instance should receive traffic."""
        return self.status == InstanceStatus.UP

    def with_heartbeat(self, timestamp_ms: int) -> InstanceRecord:
        """Return a copy carrying a new heartbeat timestamp."""
        return self.model_copy(update={"last_heartbeat_timestamp": timestamp_ms})


class Endpoint(BaseModel):
    """A concrete network location selected for an outbound call."""

    model_config = ConfigDict(frozen=True)

    service_name: str
    instance_id: str
    host: str
    port: int
    secure: bool = False

    @property
    def url(self) -> str:
        """Base URL of the endpoint."""
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.host}:{self.port}"

    @classmethod
    def from_instance(cls, instance: InstanceRecord, prefer_ip_address: bool = False) -> Endpoint:
        """Build an endpoint from a registry record."""
        host = instance.ip_address
        if not prefer_ip_address and instance.host_name:
            host = instance.host_name
        return cls(
            service_name=instance.service_name,
            instance_id=instance.instance_id,
            host=host,
            port=instance.port,
            secure=instance.is_secure_port,
        )


class InstanceChange(BaseModel):
    """One entry of a registry delta."""

    model_config = ConfigDict(frozen=True)

    action: ActionType
    instance: InstanceRecord


class RegistryDelta(BaseModel):
    """Changes reported by the registry since its previous delta window."""

    model_config = ConfigDict(frozen=True)

    changes: tuple[InstanceChange, ...] = ()
    version: str | None = Field(default=None, description="Apps hashcode after the delta")


class RegistrySnapshot(BaseModel):
    """Locally cached copy of the registry's contents.

    Snapshots are never mutated: the discovery cache swaps in a new one on
    every successful refresh, so a reader holding a reference always sees a
    complete registry.
    """

    model_config = ConfigDict(frozen=True)

    services: dict[str, tuple[InstanceRecord, ...]] = Field(default_factory=dict)
    fetched_at: datetime
    version: str | None = Field(default=None, description="Registry apps hashcode")

    @classmethod
    def from_instances(
        cls,
        instances: Iterable[InstanceRecord],
        fetched_at: datetime,
        version: str | None = None,
    ) -> RegistrySnapshot:
        """Group records by application, keeping registry order."""
        grouped: dict[str, list[InstanceRecord]] = {}
        for instance in instances:
            grouped.setdefault(instance.service_name, []).append(instance)
        return cls(
            services={name: tuple(items) for name, items in grouped.items()},
            fetched_at=fetched_at,
            version=version,
        )

    def instances(self, service_name: str) -> tuple[InstanceRecord, ...]:
        """All cached instances of a service (empty if unknown)."""
        return self.services.get(normalize_service_name(service_name), ())

    def instances_by_vip(self, vip_address: str) -> tuple[InstanceRecord, ...]:
        """All cached instances advertising the VIP address."""
        vip = vip_address.strip().lower()
        if not vip:
            return ()
        return tuple(
            instance
            for items in self.services.values()
            for instance in items
            if vip in _vip_set(instance)
        )

    def service_names(self) -> list[str]:
        """Sorted application names."""
        return sorted(self.services)

    def instance_count(self) -> int:
        """Total number of cached instances."""
        return sum(len(items) for items in self.services.values())

    def compute_hashcode(self) -> str:
        """Compute the registry's status digest, e.g. ``DOWN_1_UP_3_``."""
        counts: dict[str, int] = {}
        for items in self.services.values():
            for instance in items:
                counts[instance.status.value] = counts.get(instance.status.value, 0) + 1
        return "".join(f"{status}_{count}_" for status, count in sorted(counts.items()))

    def apply_delta(
        self,
        changes: Iterable[InstanceChange],
        fetched_at: datetime,
        version: str | None = None,
    ) -> RegistrySnapshot:
        """Return a new snapshot with the delta changes applied."""
        services = {name: list(items) for name, items in self.services.items()}
        for change in changes:
            instance = change.instance
            items = services.setdefault(instance.service_name, [])
            index = next(
                (i for i, known in enumerate(items) if known.instance_id == instance.instance_id),
                None,
            )
            if change.action == ActionType.DELETED:
                if index is not None:
                    del items[index]
            elif index is None:
                items.append(instance)
            else:
                items[index] = instance

        return RegistrySnapshot(
            services={name: tuple(items) for name, items in services.items() if items},
            fetched_at=fetched_at,
            version=version,
        )
