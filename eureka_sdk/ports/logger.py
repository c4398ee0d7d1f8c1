"""Logger port for the registration and discovery loops."""

from abc import ABC, abstractmethod
from typing import Any


class LoggerPort(ABC):
    """Where the client reports what its background loops are doing.

    Every call is a short message plus keyword fields such as ``service=``,
    ``instance=`` or ``error=``. Transitions go to ``info``, failed registry
    calls to ``warning``, and unexpected errors inside a loop to ``exception``.
    """

    @abstractmethod
    def debug(self, message: str, **fields: Any) -> None:
        """Routine events such as a successful heartbeat."""

    @abstractmethod
    def info(self, message: str, **fields: Any) -> None:
        """State transitions and lifecycle events."""

    @abstractmethod
    def warning(self, message: str, **fields: Any) -> None:
        """Failed registry calls that will be retried."""

    @abstractmethod
    def exception(self, message: str, exc_info: BaseException | None = None, **fields: Any) -> None:
        """Unexpected errors, logged with a traceback."""
