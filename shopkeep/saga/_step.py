"""
Saga step creation.
"""

from __future__ import annotations

from kungfu import LazyCoroResult

from shopkeep.saga._types import CompensatorWithValue, Saga, SagaStep

# ═══════════════════════════════════════════════════════════════════════════════
# step() — Primary Constructor
# ═══════════════════════════════════════════════════════════════════════════════


def step[T, E](
    action: LazyCoroResult[T, E],
    compensate: CompensatorWithValue[T] | None = None,
    *,
    name: str = "step",
) -> SagaStep[T, E]:
    """
    Create a compensated saga step.

    Args:
        action: The operation to perform (LazyCoroResult)
        compensate: The compensation action if rollback needed
        name: Label used in logs

    Example:
        from shopkeep import saga as S

        reserve = S.step(
            LazyCoroResult(lambda: ledger.reserve(tenant, pid, 2)),
            compensate=ledger.release,
            name="reserve:42",
        )
    """
    return SagaStep(action=action, compensate=compensate, name=name)


# ═══════════════════════════════════════════════════════════════════════════════
# saga() — Sequence Constructor
# ═══════════════════════════════════════════════════════════════════════════════


def saga[T, E](*steps: SagaStep[T, E]) -> Saga[T, E]:
    """Sequence of steps run in order, compensated in reverse."""
    return Saga(steps=tuple(steps))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("step", "saga")
