"""Translation between the registry's JSON wire format and domain models.

Every function here is pure. Decoding is lenient per record: a malformed
instance raises ``DecodeError`` from ``decode_instance``, while the snapshot
and delta decoders collect those errors and keep every other record.
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from ..domain.enums import ActionType
from ..domain.exceptions import DecodeError
from ..domain.models import InstanceChange, InstanceRecord, RegistryDelta, RegistrySnapshot

DEFAULT_DATA_CENTER_CLASS = "com.netflix.appinfo.InstanceInfo$DefaultDataCenterInfo"
DEFAULT_DATA_CENTER_NAME = "MyOwn"
DISABLED_SECURE_PORT = 443

_JAVA_CLASS_NAME = re.compile(r"^[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)+$")


def encode_instance(instance: InstanceRecord) -> dict[str, Any]:
    """Encode a record as the registry's instance document."""
    if instance.is_secure_port:
        port = _encode_port(instance.port, enabled=False)
        secure_port = _encode_port(instance.port, enabled=True)
    else:
        port = _encode_port(instance.port, enabled=True)
        secure_port = _encode_port(DISABLED_SECURE_PORT, enabled=False)

    data: dict[str, Any] = {
        "instanceId": instance.instance_id,
        "hostName": instance.host_name,
        "app": instance.service_name,
        "ipAddr": instance.ip_address,
        "vipAddress": instance.vip_address,
        "secureVipAddress": instance.secure_vip_address,
        "status": instance.status.value,
        "port": port,
        "securePort": secure_port,
        "homePageUrl": instance.home_page_url,
        "statusPageUrl": instance.status_page_url,
        "healthCheckUrl": instance.health_check_url,
        "dataCenterInfo": {
            "@class": DEFAULT_DATA_CENTER_CLASS,
            "name": DEFAULT_DATA_CENTER_NAME,
        },
        "metadata": dict(instance.metadata),
    }

    lease: dict[str, int] = {}
    if instance.lease_duration_secs is not None:
        lease["durationInSecs"] = instance.lease_duration_secs
    if instance.last_heartbeat_timestamp is not None:
        lease["lastRenewalTimestamp"] = instance.last_heartbeat_timestamp
    if lease:
        data["leaseInfo"] = lease

    return data


def encode_registration(instance: InstanceRecord) -> bytes:
    """Encode the body of a register call."""
    return json.dumps({"instance": encode_instance(instance)}).encode()


def decode_instance(data: Any) -> InstanceRecord:
    """Decode one instance document.

    Raises:
        DecodeError: If a required field is missing or invalid
    """
    if not isinstance(data, dict):
        raise DecodeError("Instance record is not an object")

    host_name = _optional_str(data.get("hostName"))
    instance_id = _optional_str(data.get("instanceId")) or host_name
    app = _optional_str(data.get("app"))
    ip_address = _optional_str(data.get("ipAddr"))

    missing = [
        name
        for name, value in (("app", app), ("instanceId", instance_id), ("ipAddr", ip_address))
        if not value
    ]
    if missing:
        raise DecodeError(
            f"Instance record missing required field(s): {', '.join(missing)}",
            instance_id=instance_id or None,
        )

    port, is_secure = _decode_ports(data, instance_id)
    lease = data.get("leaseInfo") if isinstance(data.get("leaseInfo"), dict) else {}

    try:
        return InstanceRecord(
            service_name=app,
            instance_id=instance_id,
            ip_address=ip_address,
            port=port,
            is_secure_port=is_secure,
            status=data.get("status"),
            last_heartbeat_timestamp=_optional_int(
                lease.get("lastRenewalTimestamp"), "lastRenewalTimestamp", instance_id
            ),
            metadata=_decode_metadata(data.get("metadata")),
            host_name=host_name,
            vip_address=_optional_str(data.get("vipAddress")),
            secure_vip_address=_optional_str(data.get("secureVipAddress")),
            home_page_url=_optional_str(data.get("homePageUrl")),
            status_page_url=_optional_str(data.get("statusPageUrl")),
            health_check_url=_optional_str(data.get("healthCheckUrl")),
            lease_duration_secs=_optional_int(
                lease.get("durationInSecs"), "durationInSecs", instance_id
            )
            or None,
        )
    except ValidationError as e:
        raise DecodeError(f"Invalid instance record: {e}", instance_id=instance_id) from e


def decode_snapshot(
    body: bytes | str | dict[str, Any], fetched_at: datetime
) -> tuple[RegistrySnapshot, list[DecodeError]]:
    """Decode a full registry document.

    Returns:
        The snapshot of every decodable record and the errors for the rest

    Raises:
        DecodeError: If the document itself is not a registry payload
    """
    applications = _load_applications(body)
    instances: list[InstanceRecord] = []
    errors: list[DecodeError] = []

    for raw in _iter_instance_documents(applications, errors):
        try:
            instances.append(decode_instance(raw))
        except DecodeError as e:
            errors.append(e)

    snapshot = RegistrySnapshot.from_instances(
        instances, fetched_at=fetched_at, version=_version(applications)
    )
    return snapshot, errors


def decode_delta(body: bytes | str | dict[str, Any]) -> tuple[RegistryDelta, list[DecodeError]]:
    """Decode a registry delta document.

    Every instance carries an ``actionType``; a missing one counts as MODIFIED.
    """
    applications = _load_applications(body)
    changes: list[InstanceChange] = []
    errors: list[DecodeError] = []

    for raw in _iter_instance_documents(applications, errors):
        try:
            instance = decode_instance(raw)
            action = _decode_action(raw.get("actionType"), instance.instance_id)
        except DecodeError as e:
            errors.append(e)
            continue
        changes.append(InstanceChange(action=action, instance=instance))

    return RegistryDelta(changes=tuple(changes), version=_version(applications)), errors


def _load_applications(body: bytes | str | dict[str, Any]) -> dict[str, Any]:
    if isinstance(body, dict):
        document: Any = body
    else:
        try:
            text = body.decode() if isinstance(body, bytes) else body
            document = json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"Registry payload is not valid JSON: {e}") from e

    applications = document.get("applications") if isinstance(document, dict) else None
    if not isinstance(applications, dict):
        raise DecodeError("Registry payload has no 'applications' object")
    return applications


def _iter_instance_documents(applications: dict[str, Any], errors: list[DecodeError]):
    for app in _as_list(applications.get("application")):
        if not isinstance(app, dict):
            errors.append(DecodeError("Application entry is not an object"))
            continue
        app_name = _optional_str(app.get("name"))
        for raw in _as_list(app.get("instance")):
            if isinstance(raw, dict) and not raw.get("app") and app_name:
                raw = {**raw, "app": app_name}
            yield raw


def _version(applications: dict[str, Any]) -> str | None:
    return _optional_str(applications.get("apps__hashcode")) or None


def _decode_action(value: Any, instance_id: str) -> ActionType:
    if value is None:
        return ActionType.MODIFIED
    try:
        return ActionType(str(value).strip().upper())
    except ValueError as e:
        raise DecodeError(f"Unknown delta action '{value}'", instance_id=instance_id) from e


def _encode_port(number: int, enabled: bool) -> dict[str, Any]:
    return {"$": number, "@enabled": "true" if enabled else "false"}


def _decode_ports(data: dict[str, Any], instance_id: str) -> tuple[int, bool]:
    port, port_enabled = _decode_port(data.get("port"), "port", instance_id)
    secure, secure_enabled = _decode_port(data.get("securePort"), "securePort", instance_id)

    if port is not None and port_enabled:
        return port, False
    if secure is not None and secure_enabled:
        return secure, True
    if port is not None:
        return port, False
    raise DecodeError("Instance record has no port", instance_id=instance_id)


def _decode_port(value: Any, field: str, instance_id: str) -> tuple[int | None, bool]:
    if value is None:
        return None, False
    if isinstance(value, dict):
        return (
            _optional_int(value.get("$"), field, instance_id),
            _as_bool(value.get("@enabled", True)),
        )
    return _optional_int(value, field, instance_id), True


def _decode_metadata(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        str(key): str(item)
        for key, item in value.items()
        if item is not None and not _is_type_marker(key, item)
    }


def _is_type_marker(key: Any, value: Any) -> bool:
    """Registry servers tag the metadata map with its Java class under ``@class``."""
    return key == "@class" and isinstance(value, str) and bool(_JAVA_CLASS_NAME.match(value))


def _optional_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional_int(value: Any, field: str, instance_id: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise DecodeError(f"Field '{field}' is not a number", instance_id=instance_id)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Field '{field}' is not a number", instance_id=instance_id) from e


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
