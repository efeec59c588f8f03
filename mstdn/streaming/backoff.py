"""Exponential reconnect backoff with full jitter."""

from __future__ import annotations

import dataclasses
import random


def backoff_ceiling(attempt: int, *, base_s: float, max_s: float) -> float:
    """Return the delay ceiling for the 1-based ``attempt``.

    The ceiling doubles per consecutive failure from ``base_s`` and is
    capped at ``max_s``.
    """
    if attempt < 1:
        msg = f"attempt must be >= 1, got {attempt}"
        raise ValueError(msg)
    # Bound the exponent so very long outages cannot overflow the float.
    exponent = min(attempt - 1, 62)
    return min(max_s, base_s * (2**exponent))


@dataclasses.dataclass(slots=True)
class ReconnectBackoff:
    """Track consecutive failures and draw jittered delays.

    Attributes
    ----------
    base_s
        Ceiling for the first attempt.
    max_s
        Cap applied to every ceiling.
    rng
        Source of the uniform jitter factor.
    attempt
        Consecutive failures since the last healthy connection.

    """

    base_s: float
    max_s: float
    rng: random.Random = dataclasses.field(default_factory=random.Random)
    attempt: int = 0

    def next_delay(self) -> tuple[int, float, float]:
        """Record a failure and return ``(attempt, ceiling, delay)``.

        ``delay`` is drawn uniformly from ``[0, ceiling]``.
        """
        self.attempt += 1
        ceiling = backoff_ceiling(self.attempt, base_s=self.base_s, max_s=self.max_s)
        return (self.attempt, ceiling, ceiling * self.rng.random())

    def reset(self) -> None:
        """Forget previous failures after a healthy connection."""
        self.attempt = 0


__all__ = ["ReconnectBackoff", "backoff_ceiling"]
