"""Registry port - logical registry operations used by the core."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain.exceptions import DecodeError
from ..domain.models import InstanceRecord, RegistryDelta, RegistrySnapshot


class RegistryPort(ABC):
    """Abstract interface for the registry's REST operations.

    Implementations translate the outcome of each call into the error
    taxonomy: transport failures raise ``TransportError``, a heartbeat for an
    unknown instance raises ``NotRegisteredError``, any other non-2xx answer
    raises ``RegistryRequestError``.
    """

    @abstractmethod
    async def register(self, instance: InstanceRecord) -> None:
        """Register an instance.

        Raises:
            TransportError: If the registry could not be reached
            RegistryRequestError: If the registry rejected the registration
        """
        ...

    @abstractmethod
    async def send_heartbeat(self, instance: InstanceRecord) -> None:
        """Renew the lease of a registered instance.

        Raises:
            NotRegisteredError: If the registry does not know the instance
            TransportError: If the registry could not be reached
            RegistryRequestError: On any other failure status
        """
        ...

    @abstractmethod
    async def deregister(self, instance: InstanceRecord) -> None:
        """Remove an instance from the registry.

        Raises:
            TransportError: If the registry could not be reached
            RegistryRequestError: If the registry rejected the request
        """
        ...

    @abstractmethod
    async def fetch_registry(self) -> tuple[RegistrySnapshot, list[DecodeError]]:
        """Fetch the full registry.

        Returns:
            The decoded snapshot and the records that were rejected

        Raises:
            DecodeError: If the payload as a whole is unusable
        """
        ...

    @abstractmethod
    async def fetch_delta(self) -> tuple[RegistryDelta, list[DecodeError]]:
        """Fetch the changes since the previous fetch.

        Returns:
            The decoded delta and the records that were rejected
        """
        ...
