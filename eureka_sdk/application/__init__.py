"""Application layer - Registration, discovery and the client facade."""

from .client import EurekaClient
from .discovery_cache import DiscoveryCache
from .registration_manager import RegistrationManager

__all__ = ["DiscoveryCache", "EurekaClient", "RegistrationManager"]
