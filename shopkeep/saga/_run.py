"""
Saga execution with automatic rollback.

Every exit path rolls back: a failed step, the saga deadline, and
cancellation of the running task. An action that already started is
allowed to settle before rollback so its effect is never lost.
"""

from __future__ import annotations

import asyncio
import logging

from kungfu import Error, Ok, Result

from shopkeep.saga._types import (
    CompensatorWithValue,
    Saga,
    SagaError,
    SagaResult,
    SagaStep,
    StepTimeout,
)
from shopkeep.saga.policy import ONCE, RetryPolicy

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Recorded Compensator
# ═══════════════════════════════════════════════════════════════════════════════

type RecordedCompensator[T] = tuple[str, T, CompensatorWithValue[T]]

# ═══════════════════════════════════════════════════════════════════════════════
# run_step() — Execute single step
# ═══════════════════════════════════════════════════════════════════════════════

async def run_step[T, E](
    step: SagaStep[T, E],
    compensators: list[RecordedCompensator[T]],
) -> Result[T, E]:
    """
    Execute single step, recording compensator on success.

    If the caller is cancelled while the action is in flight, the action
    still runs to completion and its compensator is recorded before the
    cancellation propagates.
    """
    task = asyncio.ensure_future(step.action())
    try:
        result = await asyncio.shield(task)
    except asyncio.CancelledError:
        settled = await task
        _record(step, settled, compensators)
        raise
    _record(step, result, compensators)
    return result


def _record[T, E](
    step: SagaStep[T, E],
    result: Result[T, E],
    compensators: list[RecordedCompensator[T]],
) -> None:
    match result:
        case Ok(value):
            if step.compensate is not None:
                compensators.append((step.name, value, step.compensate))
        case Error(e):
            logger.debug("saga step %s failed: %r", step.name, e)


# ═══════════════════════════════════════════════════════════════════════════════
# run_compensators() — Rollback
# ═══════════════════════════════════════════════════════════════════════════════

async def run_compensators[T](
    compensators: list[RecordedCompensator[T]],
    retry: RetryPolicy = ONCE,
) -> tuple[int, int]:
    """Run compensators in reverse. Returns (run, failed)."""
    comp_run = 0
    comp_failed = 0

    for name, value, comp in reversed(compensators):
        if await _compensate(name, value, comp, retry):
            comp_run += 1
        else:
            comp_failed += 1

    return comp_run, comp_failed


async def _compensate[T](
    name: str,
    value: T,
    comp: CompensatorWithValue[T],
    retry: RetryPolicy,
) -> bool:
    for attempt in range(1, retry.times + 1):
        try:
            await comp(value)
            return True
        except Exception:
            if attempt == retry.times:
                logger.exception(
                    "compensator for %s gave up after %d attempt(s); %r was not undone",
                    name, attempt, value,
                )
                return False
            logger.warning("compensator for %s failed (attempt %d), retrying", name, attempt)
            await asyncio.sleep(retry.delay.total_seconds())
    return False


# ═══════════════════════════════════════════════════════════════════════════════
# run() — Execute Saga
# ═══════════════════════════════════════════════════════════════════════════════

async def run[T, E](
    saga: Saga[T, E] | SagaStep[T, E],
) -> Result[SagaResult[tuple[T, ...]], SagaError[E]]:
    """
    Execute saga steps in order with automatic rollback on failure.

    On success: returns SagaResult with every step's value, in order.
    On failure: runs compensators in reverse, returns SagaError.

    Example:
        from shopkeep import saga as S

        result = await S.run(
            S.saga(reserve_a, reserve_b).policy(S.policy.timeout(seconds=5))
        )

        match result:
            case Ok(r):
                print(f"Reserved: {r.value}")
            case Error(e):
                print(f"Failed at step {e.step_failed}")
    """
    if isinstance(saga, SagaStep):
        saga = Saga(steps=(saga,))

    compensators: list[RecordedCompensator[T]] = []
    values: list[T] = []
    failure: E | StepTimeout | None = None
    failed_at = 0
    deadline = saga.timeout.seconds if saga.timeout is not None else None

    try:
        async with asyncio.timeout(deadline):
            for index, step in enumerate(saga.steps, start=1):
                failed_at = index
                match await run_step(step, compensators):
                    case Ok(value):
                        values.append(value)
                    case Error(e):
                        failure = e
                        break
    except TimeoutError:
        if saga.timeout is None:
            await run_compensators(compensators, saga.retry)
            raise
        logger.warning("saga deadline of %s passed at step %d", saga.timeout.duration, failed_at)
        failure = StepTimeout(saga.timeout.duration)
    except BaseException:
        logger.warning("saga interrupted at step %d, rolling back", failed_at)
        await run_compensators(compensators, saga.retry)
        raise

    if failure is None:
        return Ok(SagaResult(
            value=tuple(values),
            steps_executed=len(saga.steps),
            compensators_recorded=len(compensators),
        ))

    comp_run, comp_failed = await run_compensators(compensators, saga.retry)

    return Error(SagaError(
        error=failure,
        step_failed=failed_at,
        compensators_run=comp_run,
        compensators_failed=comp_failed,
        rollback_complete=comp_failed == 0,
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("run", "run_step", "run_compensators")
