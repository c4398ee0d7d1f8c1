"""Domain layer - Registry model, state machine and errors."""

from .enums import ActionType, InstanceStatus, RegistrationPhase, TransportErrorKind
from .exceptions import (
    AlreadyStoppedError,
    ConfigurationError,
    DecodeError,
    EurekaError,
    InvalidStateTransitionError,
    NoHealthyInstanceError,
    NotRegisteredError,
    NotYetPopulatedError,
    RegistryRequestError,
    ResolutionError,
    TransportError,
)
from .models import (
    Endpoint,
    InstanceChange,
    InstanceRecord,
    RegistryDelta,
    RegistrySnapshot,
    derive_instance_id,
    normalize_service_name,
)
from .registration import RegistrationState
from .value_objects import BackoffPolicy

__all__ = [
    # Enums
    "ActionType",
    # Exceptions
    "AlreadyStoppedError",
    # Value objects
    "BackoffPolicy",
    "ConfigurationError",
    "DecodeError",
    # Models
    "Endpoint",
    "EurekaError",
    "InstanceChange",
    "InstanceRecord",
    "InstanceStatus",
    "InvalidStateTransitionError",
    "NoHealthyInstanceError",
    "NotRegisteredError",
    "NotYetPopulatedError",
    "RegistrationPhase",
    "RegistrationState",
    "RegistryDelta",
    "RegistryRequestError",
    "RegistrySnapshot",
    "ResolutionError",
    "TransportError",
    "TransportErrorKind",
    "derive_instance_id",
    "normalize_service_name",
]
