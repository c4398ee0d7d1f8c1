"""Clock port abstraction for time handling.

Heartbeat timestamps and snapshot fetch times come from this port so tests
can pin them.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class ClockPort(ABC):
    """Abstract clock interface for time operations."""

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time as a timezone-aware datetime.

        Note:
            Implementations MUST return timezone-aware datetimes.
        """
        ...

    def now_ms(self) -> int:
        """Current time in epoch milliseconds, the registry's unit."""
        return int(self.now().timestamp() * 1000)
