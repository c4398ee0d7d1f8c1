"""Domain value objects.

Value objects here carry timing policy used by the background loops.
"""

import math
import secrets

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BackoffPolicy(BaseModel):
    """Bounded exponential backoff with jitter.

    The delay for retry ``attempt`` (1-based) is
    ``base_ms * multiplier ** (attempt - 1)`` capped at ``max_ms``, plus up to
    ``jitter_factor`` of that value in random jitter. The jittered delay is
    also capped at ``max_ms``.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="forbid",
    )

    base_ms: int = Field(default=1000, gt=0, alias="baseMs")
    max_ms: int = Field(default=30000, gt=0, alias="maxMs")
    multiplier: float = Field(default=2.0, ge=1.0)
    jitter_factor: float = Field(default=0.1, ge=0.0, le=1.0, alias="jitterFactor")

    @model_validator(mode="after")
    def validate_bounds(self) -> "BackoffPolicy":
        """Ensure the cap is not below the base delay."""
        if self.max_ms < self.base_ms:
            raise ValueError("max_ms must be greater than or equal to base_ms")
        return self

    def delay_ms(self, attempt: int) -> float:
        """Delay in milliseconds before retry ``attempt``.

        Args:
            attempt: Retry number, starting at 1. Values below 1 yield 0.

        Returns:
            The delay in milliseconds.
        """
        if attempt < 1:
            return 0.0

        delay = min(self.base_ms * self.multiplier ** self._exponent(attempt), float(self.max_ms))
        if self.jitter_factor:
            delay += delay * self.jitter_factor * secrets.SystemRandom().random()
        return min(delay, float(self.max_ms))

    def _exponent(self, attempt: int) -> int:
        """Growth exponent for ``attempt``; stops rising once the cap is reached."""
        if self.multiplier == 1.0:
            return 0
        ceiling = math.ceil(math.log(self.max_ms / self.base_ms, self.multiplier))
        return min(attempt - 1, ceiling)

    def delay_seconds(self, attempt: int) -> float:
        """Delay in seconds before retry ``attempt``."""
        return self.delay_ms(attempt) / 1000
