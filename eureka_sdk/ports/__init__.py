"""Ports layer - Interfaces the core depends on."""

from .clock import ClockPort
from .logger import LoggerPort
from .metrics import MetricsPort
from .registry import RegistryPort
from .selector import InstanceSelector, SelectionStrategy
from .transport import TransportPort, TransportResponse

__all__ = [
    "ClockPort",
    "InstanceSelector",
    "LoggerPort",
    "MetricsPort",
    "RegistryPort",
    "SelectionStrategy",
    "TransportPort",
    "TransportResponse",
]
