"""
Saga types — core data structures.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import timedelta

from kungfu import LazyCoroResult

from shopkeep.saga.policy import ONCE, Policy, RetryPolicy, TimeoutPolicy

# ═══════════════════════════════════════════════════════════════════════════════
# Compensator — Undo Action
# ═══════════════════════════════════════════════════════════════════════════════

type CompensatorWithValue[T] = Callable[[T], Awaitable[None]]
"""Compensation function that receives the action result and undoes it."""

# ═══════════════════════════════════════════════════════════════════════════════
# SagaStep — Single Step with Compensation
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SagaStep[T, E]:
    """
    A single saga step: action + compensator.

    When action succeeds, compensator is recorded.
    If later step fails, compensators run in reverse.
    """

    action: LazyCoroResult[T, E]
    compensate: CompensatorWithValue[T] | None
    name: str = "step"


# ═══════════════════════════════════════════════════════════════════════════════
# Saga — ordered steps + policies
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Saga[T, E]:
    """
    Ordered sequence of steps sharing one rollback log.

    Immutable; ``then``/``policy`` return a new Saga.

        saga = (
            S.saga(reserve_a, reserve_b)
            .then(claim_coupon)
            .policy(S.policy.timeout(seconds=5))
            .policy(S.policy.compensate.retry(times=3))
        )
    """

    steps: tuple[SagaStep[T, E], ...] = ()
    retry: RetryPolicy = ONCE
    timeout: TimeoutPolicy | None = None

    def then(self, *steps: SagaStep[T, E]) -> Saga[T, E]:
        """Append steps after the current ones."""
        return replace(self, steps=(*self.steps, *steps))

    def policy(self, p: Policy) -> Saga[T, E]:
        match p:
            case RetryPolicy():
                return replace(self, retry=p)
            case TimeoutPolicy():
                return replace(self, timeout=p)


# ═══════════════════════════════════════════════════════════════════════════════
# Result Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SagaResult[T]:
    """Successful saga result with metadata."""

    value: T
    steps_executed: int
    compensators_recorded: int


@dataclass(frozen=True, slots=True)
class StepTimeout:
    """The saga's deadline passed before every step finished."""

    after: timedelta


@dataclass(frozen=True, slots=True)
class SagaError[E]:
    """Saga error with rollback status."""

    error: E | StepTimeout
    step_failed: int
    compensators_run: int
    compensators_failed: int
    rollback_complete: bool


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "CompensatorWithValue",
    "SagaStep",
    "Saga",
    "SagaResult",
    "StepTimeout",
    "SagaError",
)
