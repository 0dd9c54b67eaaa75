"""
Saga — multi-step writes with compensation.

    from shopkeep import saga as S

    saga = S.saga(S.step(reserve_a, release), S.step(reserve_b, release))
    result = await S.run(saga.policy(S.policy.timeout(seconds=5)))
"""

from __future__ import annotations

from shopkeep.saga._types import (
    CompensatorWithValue,
    Saga,
    SagaStep,
    SagaResult,
    SagaError,
    StepTimeout,
)
from shopkeep.saga._step import step, saga
from shopkeep.saga._run import run, run_compensators
from shopkeep.saga import policy

__all__ = (
    "CompensatorWithValue",
    "Saga",
    "SagaStep",
    "SagaResult",
    "SagaError",
    "StepTimeout",
    "step",
    "saga",
    "run",
    "run_compensators",
    "policy",
)
