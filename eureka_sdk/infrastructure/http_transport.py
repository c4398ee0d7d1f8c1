"""HTTP transport backed by an httpx.AsyncClient."""

from __future__ import annotations

import httpx

from ..domain.enums import TransportErrorKind
from ..domain.exceptions import TransportError
from ..ports.transport import TransportPort, TransportResponse
from .config import EurekaSettings


class HttpxTransport(TransportPort):
    """TransportPort performing plain HTTP(S) exchanges with the registry.

    The client is created lazily so the transport can be built outside a
    running event loop. An injected client is never closed by the transport.
    """

    def __init__(
        self,
        base_url: str,
        timeout_ms: int = 10000,
        client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
    ):
        """Initialize the transport.

        Args:
            base_url: Registry base URL, e.g. ``http://localhost:8761``
            timeout_ms: Per-request timeout
            client: Pre-configured client (tests pass one with a MockTransport)
            headers: Headers sent with every request
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout_ms / 1000)
        self._headers = headers or {}
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: EurekaSettings) -> HttpxTransport:
        return cls(settings.base_url, timeout_ms=settings.request_timeout_ms)

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url, timeout=self._timeout, headers=self._headers
            )
        return self._client

    async def send(
        self,
        method: str,
        path: str,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> TransportResponse:
        url = path if path.startswith(("http://", "https://")) else self._base_url + path
        try:
            response = await self._get_client().request(
                method, url, headers=headers, content=body, timeout=self._timeout
            )
        except httpx.TimeoutException as e:
            raise TransportError(TransportErrorKind.TIMEOUT, str(e) or "request timed out") from e
        except httpx.ConnectError as e:
            raise TransportError(TransportErrorKind.CONNECTION_REFUSED, str(e)) from e
        except httpx.HTTPError as e:
            raise TransportError(TransportErrorKind.OTHER, str(e)) from e

        return TransportResponse(status_code=response.status_code, body=response.content)

    async def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
