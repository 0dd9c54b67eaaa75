"""
Saga execution policies.

Namespace: S.policy.*

Examples:
    saga.policy(S.policy.compensate.retry(times=3))
    saga.policy(S.policy.timeout(seconds=60))
"""

from __future__ import annotations

from shopkeep.saga.policy._compensate import ONCE, RetryPolicy, retry
from shopkeep.saga.policy._timeout import TimeoutPolicy, timeout


# Namespace objects
class compensate:
    """Compensation policies."""

    once = ONCE
    retry = staticmethod(retry)


type Policy = RetryPolicy | TimeoutPolicy


__all__ = (
    "compensate",
    "ONCE",
    "timeout",
    "RetryPolicy",
    "TimeoutPolicy",
    "Policy",
)
