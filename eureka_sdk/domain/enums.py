"""Domain enums for type safety and consistency.

This module centralizes the enumeration types shared by the wire format
and the internal model. Enums that cross the wire carry an explicit
fallback member so one unexpected value never fails a whole decode.
"""

from enum import Enum


class InstanceStatus(str, Enum):
    """Registry status of a service instance.

    Represents the operational state the registry reports for an instance.
    """

    UP = "UP"  # Ready to receive traffic
    DOWN = "DOWN"  # Failed health checks
    STARTING = "STARTING"  # Still initializing
    OUT_OF_SERVICE = "OUT_OF_SERVICE"  # Taken out of rotation on purpose
    UNKNOWN = "UNKNOWN"  # Anything the registry sent that we do not recognize

    @classmethod
    def parse(cls, value: object) -> "InstanceStatus":
        """Parse a wire value, falling back to UNKNOWN."""
        if isinstance(value, InstanceStatus):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                return cls.UNKNOWN
        return cls.UNKNOWN


class RegistrationPhase(str, Enum):
    """Phases of the local instance's registration lifecycle."""

    UNREGISTERED = "UNREGISTERED"  # Created, start() not yet called
    REGISTERING = "REGISTERING"  # Register call pending or backing off
    REGISTERED = "REGISTERED"  # Heartbeats succeeding
    HEARTBEAT_FAILING = "HEARTBEAT_FAILING"  # Consecutive heartbeat failures
    OBSERVING = "OBSERVING"  # Registration disabled, discovery only
    DEREGISTERING = "DEREGISTERING"  # Best-effort deregister in progress
    STOPPED = "STOPPED"  # Terminal


class ActionType(str, Enum):
    """Change kind attached to instances in a registry delta."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


class TransportErrorKind(str, Enum):
    """Coarse classification of transport failures."""

    TIMEOUT = "TIMEOUT"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    OTHER = "OTHER"
