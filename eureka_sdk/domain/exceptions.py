"""Domain-specific exceptions for the registry client."""

from .enums import RegistrationPhase, TransportErrorKind


class EurekaError(Exception):
    """Base exception for all eureka_sdk errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(EurekaError):
    """Invalid or incomplete client configuration."""

    pass


class TransportError(EurekaError):
    """Raised by a transport when an exchange with the registry fails.

    Always treated as transient by the background loops.
    """

    def __init__(self, kind: TransportErrorKind, detail: str = ""):
        message = f"Transport failure ({kind.value})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, details={"kind": kind.value, "detail": detail})
        self.kind = kind
        self.detail = detail


class RegistryRequestError(EurekaError):
    """The registry answered with an unexpected, non-2xx status."""

    def __init__(self, status_code: int, operation: str, body: str = ""):
        super().__init__(
            f"Registry rejected '{operation}' with status {status_code}",
            details={"status_code": status_code, "operation": operation},
        )
        self.status_code = status_code
        self.operation = operation
        self.body = body


class NotRegisteredError(EurekaError):
    """The registry does not know the instance (heartbeat answered 404)."""

    def __init__(self, service_name: str, instance_id: str):
        super().__init__(
            f"Instance '{instance_id}' of '{service_name}' is not registered",
            details={"service_name": service_name, "instance_id": instance_id},
        )
        self.service_name = service_name
        self.instance_id = instance_id


class DecodeError(EurekaError):
    """A registry payload or a single instance record could not be decoded."""

    def __init__(self, message: str, instance_id: str | None = None):
        super().__init__(message)
        self.instance_id = instance_id
        if instance_id:
            self.details["instance_id"] = instance_id


class ResolutionError(EurekaError):
    """Base exception for endpoint resolution errors."""

    def __init__(self, message: str, service_name: str | None = None):
        super().__init__(message)
        self.service_name = service_name
        if service_name:
            self.details["service_name"] = service_name


class NotYetPopulatedError(ResolutionError):
    """Raised when resolving before the first successful registry fetch."""

    def __init__(self, service_name: str | None = None):
        super().__init__("Registry cache has not been populated yet", service_name)


class NoHealthyInstanceError(ResolutionError):
    """Raised when a service is unknown or has no instance in status UP."""

    def __init__(self, service_name: str):
        super().__init__(f"No healthy instance available for '{service_name}'", service_name)


class AlreadyStoppedError(EurekaError):
    """Raised when start() is called on a component that was stopped."""

    def __init__(self, component: str):
        super().__init__(
            f"{component} has been stopped and cannot be restarted",
            details={"component": component},
        )
        self.component = component


class InvalidStateTransitionError(EurekaError):
    """Raised on an edge the registration state machine does not allow."""

    def __init__(self, current: RegistrationPhase, event: str):
        super().__init__(
            f"Cannot handle '{event}' while {current.value}",
            details={"current": current.value, "event": event},
        )
        self.current = current
        self.event = event
