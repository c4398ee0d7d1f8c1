"""Transport port - the only way the core talks to the registry."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field


class TransportResponse(BaseModel):
    """Status and raw body of one request/response exchange."""

    model_config = ConfigDict(frozen=True)

    status_code: int = Field(..., ge=100, le=599)
    body: bytes = b""

    @property
    def is_success(self) -> bool:
        """2xx status."""
        return 200 <= self.status_code < 300

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    def text(self) -> str:
        """Body decoded as UTF-8, replacing undecodable bytes."""
        return self.body.decode("utf-8", errors="replace")


class TransportPort(ABC):
    """Abstract interface for request/response exchanges with the registry.

    Implementations handle connection management, TLS and authentication.
    """

    @abstractmethod
    async def send(
        self,
        method: str,
        path: str,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> TransportResponse:
        """Perform one exchange.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: Path relative to the registry base URL
            headers: Optional request headers
            body: Optional request body

        Returns:
            The registry's response, whatever its status code

        Raises:
            TransportError: If no response was received
        """
        ...

    async def close(self) -> None:
        """Release transport resources."""
        return None
