"""Wall-clock implementation of the ClockPort."""

from datetime import UTC, datetime

from ..ports.clock import ClockPort


class SystemClock(ClockPort):
    """Clock reading the system time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)
