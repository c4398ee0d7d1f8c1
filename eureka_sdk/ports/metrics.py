"""Metrics port - Abstract interface for metrics collection."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any


class MetricsPort(ABC):
    """Abstract interface for metrics collection.

    The registration manager and discovery cache count transitions, failed
    calls and resolution misses through this port.
    """

    @abstractmethod
    def increment(self, name: str, value: int = 1) -> None:
        """Increment a counter metric.

        Args:
            name: The metric name (e.g., "registration.heartbeat.failure")
            value: The increment value (default: 1)
        """
        ...

    @abstractmethod
    def gauge(self, name: str, value: float) -> None:
        """Set a gauge metric.

        Args:
            name: The metric name (e.g., "discovery.services")
            value: The gauge value
        """
        ...

    @abstractmethod
    def record(self, name: str, value: float) -> None:
        """Record a value for summary statistics.

        Args:
            name: The metric name (e.g., "discovery.refresh.latency_ms")
            value: The value to record
        """
        ...

    @abstractmethod
    def timer(self, name: str) -> AbstractContextManager[Any]:
        """Create a context manager that records an operation's duration."""
        ...

    @abstractmethod
    def get_all(self) -> dict[str, Any]:
        """Get all metrics as a dictionary."""
        ...
