"""Configuration objects and layered YAML loading.

Settings accept both snake_case names and the camelCase keys used by
registry client configuration files (``heartbeatInterval``,
``registerWithEureka``, ``ipAddr``...).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic import model_validator
from pydantic.alias_generators import to_camel

from ..domain.enums import InstanceStatus
from ..domain.exceptions import ConfigurationError
from ..domain.models import InstanceRecord, derive_instance_id
from ..domain.value_objects import BackoffPolicy
from ..ports.selector import SelectionStrategy

DEFAULT_CONFIG_FILENAME = "eureka-client"
ENV_VARIABLE = "EUREKA_ENV"

_SETTINGS_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    str_strip_whitespace=True,
    validate_assignment=True,
)


class EurekaSettings(BaseModel):
    """Registry connection and client behavior settings."""

    model_config = _SETTINGS_CONFIG

    # Registry location
    host: str = Field(default="localhost", min_length=1, description="Registry host")
    port: int = Field(default=8761, ge=1, le=65535, description="Registry port")
    ssl: bool = Field(default=False, description="Use https to reach the registry")
    service_path: str = Field(default="/eureka/v2/apps/", description="Apps resource path")
    request_timeout_ms: int = Field(default=10000, gt=0)

    # Registration
    register_with_eureka: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "register_with_eureka", "registerWithEureka", "registerWithRegistry"
        ),
    )
    heartbeat_interval_ms: int = Field(
        default=30000,
        gt=0,
        validation_alias=AliasChoices(
            "heartbeat_interval_ms", "heartbeatIntervalMs", "heartbeatInterval"
        ),
    )
    heartbeat_failure_threshold: int = Field(default=3, ge=1)
    registration_retry_backoff: BackoffPolicy = Field(default_factory=BackoffPolicy)
    max_retries: int = Field(default=3, ge=1, description="Deregister attempts on stop")
    request_retry_delay_ms: int = Field(
        default=500,
        ge=0,
        validation_alias=AliasChoices(
            "request_retry_delay_ms", "requestRetryDelayMs", "requestRetryDelay"
        ),
    )
    shutdown_timeout_ms: int = Field(default=5000, gt=0)

    # Discovery
    fetch_registry: bool = Field(default=True)
    fetch_delta: bool = Field(default=False)
    registry_fetch_interval_ms: int = Field(
        default=30000,
        gt=0,
        validation_alias=AliasChoices(
            "registry_fetch_interval_ms", "registryFetchIntervalMs", "registryFetchInterval"
        ),
    )
    filter_up_instances: bool = Field(default=True)
    prefer_ip_address: bool = Field(default=False)
    wait_for_registry: bool = Field(default=False)
    wait_for_registry_timeout_ms: int = Field(default=30000, gt=0)
    load_balancing: SelectionStrategy = Field(default=SelectionStrategy.ROUND_ROBIN)

    @field_validator("service_path")
    @classmethod
    def normalize_service_path(cls, v: str) -> str:
        """Service path always starts and ends with a slash."""
        return "/" + v.strip("/") + "/" if v.strip("/") else "/"

    @property
    def base_url(self) -> str:
        """Registry base URL."""
        scheme = "https" if self.ssl else "http"
        return f"{scheme}://{self.host}:{self.port}"


class InstanceSettings(BaseModel):
    """Network identity and descriptive data of the local instance."""

    model_config = _SETTINGS_CONFIG

    app: str = Field(default="", description="Application (service) name")
    instance_id: str | None = Field(default=None)
    host_name: str | None = Field(default=None)
    ip_addr: str = Field(
        default="127.0.0.1",
        validation_alias=AliasChoices("ip_addr", "ipAddr", "ipAddress", "ip_address"),
    )
    port: int | None = Field(default=None, ge=1, le=65535)
    secure_port_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "secure_port_enabled", "securePortEnabled", "isSecurePort", "is_secure_port"
        ),
    )
    vip_address: str = Field(default="")
    secure_vip_address: str = Field(default="")
    home_page_url: str = Field(default="")
    status_page_url: str = Field(default="")
    health_check_url: str = Field(default="")
    status: InstanceStatus = Field(default=InstanceStatus.UP)
    lease_duration_secs: int | None = Field(default=None, gt=0)
    metadata: dict[str, str] = Field(default_factory=dict)

    @field_validator("port", mode="before")
    @classmethod
    def parse_port(cls, v: Any) -> Any:
        """Accept the registry's ``{"$": 8080, "@enabled": true}`` port form."""
        if isinstance(v, dict):
            return v.get("$")
        return v

    @field_validator("metadata", mode="before")
    @classmethod
    def stringify_metadata(cls, v: Any) -> Any:
        """YAML scalars become strings."""
        if isinstance(v, dict):
            return {str(key): str(item) for key, item in v.items() if item is not None}
        return v

    def to_instance_record(self) -> InstanceRecord:
        """Build the local instance record.

        Raises:
            ConfigurationError: If app or port is missing
        """
        if not self.app or self.port is None:
            raise ConfigurationError("Missing 'instance.app' or 'instance.port' config value")

        host = self.host_name or self.ip_addr
        return InstanceRecord(
            service_name=self.app,
            instance_id=self.instance_id or derive_instance_id(host, self.app, self.port),
            ip_address=self.ip_addr,
            port=self.port,
            is_secure_port=self.secure_port_enabled,
            status=self.status,
            metadata=self.metadata,
            host_name=host,
            vip_address=self.vip_address or self.app.lower(),
            secure_vip_address=self.secure_vip_address,
            home_page_url=self.home_page_url,
            status_page_url=self.status_page_url,
            health_check_url=self.health_check_url,
            lease_duration_secs=self.lease_duration_secs,
        )


class ClientConfig(BaseModel):
    """Complete client configuration."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    eureka: EurekaSettings = Field(default_factory=EurekaSettings)
    instance: InstanceSettings = Field(default_factory=InstanceSettings)

    @model_validator(mode="after")
    def validate_registration_identity(self) -> ClientConfig:
        """Registration needs an application name and a port."""
        if self.eureka.register_with_eureka:
            missing = [
                f"instance.{name}"
                for name, value in (("app", self.instance.app), ("port", self.instance.port))
                if not value
            ]
            if missing:
                raise ValueError(f"Missing {', '.join(missing)} config value(s)")
        return self


def build_client_config(data: dict[str, Any] | ClientConfig | None = None) -> ClientConfig:
    """Validate raw configuration data.

    Raises:
        ConfigurationError: If the data is invalid or incomplete
    """
    if isinstance(data, ClientConfig):
        return data
    try:
        return ClientConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid client configuration: {e}") from e


def load_client_config(
    filename: str = DEFAULT_CONFIG_FILENAME,
    env: str | None = None,
    overrides: dict[str, Any] | None = None,
    config_dir: str | Path = ".",
) -> ClientConfig:
    """Load configuration from layered YAML files.

    Layers, lowest precedence first: built-in defaults, ``{filename}.yml``,
    ``{filename}-{env}.yml`` and ``overrides``. Missing files are skipped.

    Args:
        filename: Base name of the YAML files
        env: Environment suffix, defaults to the EUREKA_ENV variable
        overrides: Values taking precedence over every file
        config_dir: Directory holding the files

    Returns:
        The validated configuration

    Raises:
        ConfigurationError: If a file cannot be parsed or the result is invalid
    """
    env = env if env is not None else os.getenv(ENV_VARIABLE)
    directory = Path(config_dir)

    layers = [load_yaml(directory / f"{filename}.yml")]
    if env:
        layers.append(load_yaml(directory / f"{filename}-{env}.yml"))
    layers.append(overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        merged = deep_merge(merged, layer)
    return build_client_config(merged)


def load_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping, returning an empty dict if the file is absent."""
    if not path.exists():
        return {}
    try:
        content = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid configuration file {path}: {e}") from e
    if not isinstance(content, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return content


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``, recursing into mappings."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result
