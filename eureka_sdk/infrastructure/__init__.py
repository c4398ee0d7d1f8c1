"""Infrastructure layer - Adapters for HTTP, configuration and observability."""

from .config import (
    ClientConfig,
    EurekaSettings,
    InstanceSettings,
    build_client_config,
    load_client_config,
)
from .eureka_registry_api import EurekaRegistryApi
from .http_transport import HttpxTransport
from .in_memory_metrics import InMemoryMetrics
from .selectors import RandomSelector, RoundRobinSelector, create_selector
from .simple_logger import SimpleLogger
from .system_clock import SystemClock

__all__ = [
    "ClientConfig",
    "EurekaRegistryApi",
    "EurekaSettings",
    "HttpxTransport",
    "InMemoryMetrics",
    "InstanceSettings",
    "RandomSelector",
    "RoundRobinSelector",
    "SimpleLogger",
    "SystemClock",
    "build_client_config",
    "create_selector",
    "load_client_config",
]
