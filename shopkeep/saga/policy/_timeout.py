"""
Timeout policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """Deadline for the forward (non-compensating) part of a saga."""
    duration: timedelta

    @property
    def seconds(self) -> float:
        return self.duration.total_seconds()

    @classmethod
    def of(cls, seconds: float | None = None, duration: timedelta | None = None) -> TimeoutPolicy:
        if (seconds is None) == (duration is None):
            raise ValueError("Must provide exactly one of seconds or duration")
        if duration is None:
            assert seconds is not None
            duration = timedelta(seconds=seconds)
        if duration <= timedelta(0):
            raise ValueError("Timeout must be positive")
        return cls(duration)

def timeout(seconds: float | None = None, duration: timedelta | None = None) -> TimeoutPolicy:
    """
    Set timeout for saga execution.

    Example:
        saga.policy(S.policy.timeout(seconds=60))
        saga.policy(S.policy.timeout(duration=timedelta(minutes=5)))
    """
    return TimeoutPolicy.of(seconds=seconds, duration=duration)


__all__ = ("TimeoutPolicy", "timeout")
