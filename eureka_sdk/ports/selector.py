"""Instance selection port - pluggable load-balancing policies."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Protocol

from ..domain.models import InstanceRecord


class SelectionStrategy(str, Enum):
    """Built-in instance selection strategies."""

    ROUND_ROBIN = "round_robin"
    RANDOM = "random"


class InstanceSelector(Protocol):
    """Protocol for instance selection strategies.

    Selection runs on the resolve path, so implementations must not block
    or await.
    """

    def select(
        self,
        instances: Sequence[InstanceRecord],
        service_name: str,
    ) -> InstanceRecord | None:
        """Select an instance.

        Args:
            instances: Healthy candidate instances, in registry order
            service_name: Name of the service being resolved

        Returns:
            Selected instance or None if there are no candidates
        """
        ...
