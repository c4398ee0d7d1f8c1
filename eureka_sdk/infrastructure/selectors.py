"""Load-balancing policies used by the discovery cache."""

from __future__ import annotations

import secrets
from collections.abc import Sequence

from ..domain.models import InstanceRecord
from ..ports.selector import InstanceSelector, SelectionStrategy


class RoundRobinSelector:
    """Round-robin instance selector with one cursor per service.

    Cursors are independent, so resolving one service never shifts the
    rotation of another. A candidate list that shrinks between calls wraps
    through the modulo.
    """

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}

    def select(
        self,
        instances: Sequence[InstanceRecord],
        service_name: str,
    ) -> InstanceRecord | None:
        if not instances:
            return None

        cursor = self._counters.get(service_name, 0)
        self._counters[service_name] = cursor + 1
        return instances[cursor % len(instances)]


class RandomSelector:
    """Uniform random instance selector."""

    def select(
        self,
        instances: Sequence[InstanceRecord],
        service_name: str,
    ) -> InstanceRecord | None:
        if not instances:
            return None
        return secrets.choice(list(instances))


def create_selector(strategy: SelectionStrategy | str) -> InstanceSelector:
    """Build the selector for a strategy name."""
    strategy = SelectionStrategy(strategy)
    if strategy == SelectionStrategy.RANDOM:
        return RandomSelector()
    return RoundRobinSelector()
