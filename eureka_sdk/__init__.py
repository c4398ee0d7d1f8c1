"""eureka-sdk - Asyncio client for a Eureka-style service registry."""

from .application.client import EurekaClient
from .domain.exceptions import (
    EurekaError,
    NoHealthyInstanceError,
    NotYetPopulatedError,
    ResolutionError,
)
from .infrastructure.config import ClientConfig, load_client_config

__all__ = [
    "ClientConfig",
    "EurekaClient",
    "EurekaError",
    "NoHealthyInstanceError",
    "NotYetPopulatedError",
    "ResolutionError",
    "load_client_config",
]
__version__ = "0.1.0"
