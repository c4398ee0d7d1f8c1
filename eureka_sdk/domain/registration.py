"""Registration state machine.

The state is an immutable value; every event method validates the edge and
returns the next state. The registration manager owns the current value and
is the only caller of these methods.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import RegistrationPhase
from .exceptions import InvalidStateTransitionError

_ACTIVE_PHASES = frozenset(
    {
        RegistrationPhase.REGISTERING,
        RegistrationPhase.REGISTERED,
        RegistrationPhase.HEARTBEAT_FAILING,
    }
)


class RegistrationState(BaseModel):
    """Current phase plus the consecutive heartbeat failure count."""

    model_config = ConfigDict(frozen=True, strict=True)

    phase: RegistrationPhase = RegistrationPhase.UNREGISTERED
    consecutive_failures: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_failure_count(self) -> RegistrationState:
        """Only HEARTBEAT_FAILING carries a failure count."""
        if self.phase == RegistrationPhase.HEARTBEAT_FAILING:
            if self.consecutive_failures < 1:
                raise ValueError("HEARTBEAT_FAILING requires at least one failure")
        elif self.consecutive_failures != 0:
            raise ValueError(f"{self.phase.value} cannot carry a failure count")
        return self

    def __str__(self) -> str:
        if self.phase == RegistrationPhase.HEARTBEAT_FAILING:
            return f"{self.phase.value}({self.consecutive_failures})"
        return self.phase.value

    @property
    def is_active(self) -> bool:
        """True while the manager is registering or heartbeating."""
        return self.phase in _ACTIVE_PHASES

    def _require(self, event: str, *allowed: RegistrationPhase) -> None:
        if self.phase not in allowed:
            raise InvalidStateTransitionError(self.phase, event)

    def start(self, register: bool = True) -> RegistrationState:
        """UNREGISTERED -> REGISTERING, or OBSERVING when registration is disabled."""
        self._require("start", RegistrationPhase.UNREGISTERED)
        phase = RegistrationPhase.REGISTERING if register else RegistrationPhase.OBSERVING
        return RegistrationState(phase=phase)

    def registered(self) -> RegistrationState:
        self._require("registered", RegistrationPhase.REGISTERING)
        return RegistrationState(phase=RegistrationPhase.REGISTERED)

    def heartbeat_succeeded(self) -> RegistrationState:
        self._require("heartbeat_succeeded", *self._heartbeat_phases())
        return RegistrationState(phase=RegistrationPhase.REGISTERED)

    def heartbeat_failed(self) -> RegistrationState:
        self._require("heartbeat_failed", *self._heartbeat_phases())
        return RegistrationState(
            phase=RegistrationPhase.HEARTBEAT_FAILING,
            consecutive_failures=self.consecutive_failures + 1,
        )

    def instance_not_found(self) -> RegistrationState:
        """The registry lost the record; go back to registering."""
        self._require("instance_not_found", *self._heartbeat_phases())
        return RegistrationState(phase=RegistrationPhase.REGISTERING)

    def stopping(self) -> RegistrationState:
        self._require("stopping", *_ACTIVE_PHASES)
        return RegistrationState(phase=RegistrationPhase.DEREGISTERING)

    def stopped(self) -> RegistrationState:
        self._require(
            "stopped",
            RegistrationPhase.UNREGISTERED,
            RegistrationPhase.OBSERVING,
            RegistrationPhase.DEREGISTERING,
        )
        return RegistrationState(phase=RegistrationPhase.STOPPED)

    @staticmethod
    def _heartbeat_phases() -> tuple[RegistrationPhase, ...]:
        return (RegistrationPhase.REGISTERED, RegistrationPhase.HEARTBEAT_FAILING)
