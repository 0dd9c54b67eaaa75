"""
Compensation policies.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry a failing compensator before giving up on it."""
    times: int
    delay: timedelta

    def __post_init__(self) -> None:
        if self.times < 1:
            raise ValueError("RetryPolicy.times must be >= 1")

def retry(times: int = 3, delay: timedelta = timedelta(seconds=1)) -> RetryPolicy:
    """Retry compensators on failure."""
    return RetryPolicy(times, delay)


ONCE = RetryPolicy(1, timedelta(0))
"""Run each compensator exactly once."""


__all__ = (
    "RetryPolicy",
    "retry",
    "ONCE",
)
