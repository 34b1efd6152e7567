"""Exponential backoff schedule for completion polling."""

from collections.abc import Iterator
from dataclasses import dataclass

from cipherplan.config import SessionSettings


@dataclass(frozen=True)
class ExponentialBackoff:
    """Delays of ``initial * multiplier**n``, capped at ``maximum``.

    With the defaults (0.5s, x2, 8s cap) polling waits 0.5, 1, 2, 4, 8, 8, ...
    The session deadline, not the schedule, bounds the total wait.
    """

    initial: float = 0.5
    multiplier: float = 2.0
    maximum: float = 8.0

    @classmethod
    def from_settings(cls, settings: SessionSettings) -> "ExponentialBackoff":
        return cls(
            initial=settings.poll_initial_interval,
            multiplier=settings.poll_multiplier,
            maximum=settings.poll_max_interval,
        )

    def delays(self) -> Iterator[float]:
        delay = self.initial
        while True:
            yield min(delay, self.maximum)
            delay *= self.multiplier
