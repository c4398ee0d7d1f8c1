"""In-memory metrics collector.

Counters, gauges and value summaries live in process memory. Useful for
tests and for exposing client health through a service's own endpoint.
"""

import time
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..ports.metrics import MetricsPort


class MetricsSummary:
    """Running statistics for recorded values."""

    def __init__(self):
        self.count: int = 0
        self.total: float = 0.0
        self.min: float = float("inf")
        self.max: float = float("-inf")
        self.values: list[float] = []

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.min = min(self.min, value)
        self.max = max(self.max, value)
        self.values.append(value)

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0

    def percentile(self, p: float) -> float:
        """Nearest-rank percentile, ``p`` in 0-100."""
        if not self.values:
            return 0.0
        ordered = sorted(self.values)
        index = int((p / 100) * len(ordered))
        return ordered[min(index, len(ordered) - 1)]

    def to_dict(self) -> dict[str, float]:
        empty = self.count == 0
        return {
            "count": self.count,
            "average": round(self.average, 2),
            "min": 0 if empty else round(self.min, 2),
            "max": 0 if empty else round(self.max, 2),
            "p50": round(self.percentile(50), 2),
            "p99": round(self.percentile(99), 2),
        }


class InMemoryMetrics(MetricsPort):
    """MetricsPort that keeps everything in dictionaries."""

    def __init__(self):
        self._counters: dict[str, int] = defaultdict(int)
        self._gauges: dict[str, float] = {}
        self._summaries: dict[str, MetricsSummary] = defaultdict(MetricsSummary)
        self._started = time.monotonic()

    def increment(self, name: str, value: int = 1) -> None:
        self._counters[name] += value

    def gauge(self, name: str, value: float) -> None:
        self._gauges[name] = value

    def record(self, name: str, value: float) -> None:
        self._summaries[name].add(value)

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        """Record the block's duration in milliseconds under ``name``."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(name, (time.perf_counter() - start) * 1000)

    def counter(self, name: str) -> int:
        """Current value of a counter, 0 if never incremented."""
        return self._counters.get(name, 0)

    def get_all(self) -> dict[str, Any]:
        return {
            "uptime_seconds": round(time.monotonic() - self._started, 2),
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "summaries": {name: summary.to_dict() for name, summary in self._summaries.items()},
        }
