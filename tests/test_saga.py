"""Tests for saga execution and rollback."""

import asyncio
from datetime import timedelta

import pytest
from kungfu import Error, LazyCoroResult, Ok, Result

from shopkeep import saga as S

from support import err, ok


class Ledger:
    """In-memory counter with an action log."""

    def __init__(self) -> None:
        self.held: dict[str, int] = {}
        self.log: list[str] = []
        self.fail_release: dict[str, int] = {}

    def reserve(self, name: str, *, fail: bool = False, delay: float = 0) -> LazyCoroResult[str, str]:
        async def go() -> Result[str, str]:
            if delay:
                await asyncio.sleep(delay)
            if fail:
                self.log.append(f"fail {name}")
                return Error(f"{name} unavailable")
            self.held[name] = self.held.get(name, 0) + 1
            self.log.append(f"reserve {name}")
            return Ok(name)

        return LazyCoroResult(go)

    async def release(self, name: str) -> None:
        if self.fail_release.get(name, 0) > 0:
            self.fail_release[name] -= 1
            raise RuntimeError(f"release of {name} failed")
        self.held[name] -= 1
        self.log.append(f"release {name}")

    def step(self, name: str, **kwargs) -> S.SagaStep[str, str]:
        return S.step(self.reserve(name, **kwargs), compensate=self.release, name=name)


@pytest.fixture
def ledger() -> Ledger:
    return Ledger()


async def test_success_returns_every_value_in_order(ledger):
    result = ok(await S.run(S.saga(ledger.step("a"), ledger.step("b"))))

    assert result.value == ("a", "b")
    assert result.steps_executed == 2
    assert result.compensators_recorded == 2
    assert ledger.held == {"a": 1, "b": 1}


async def test_single_step_runs_as_saga(ledger):
    assert ok(await S.run(ledger.step("a"))).value == ("a",)


async def test_failure_compensates_in_reverse(ledger):
    saga = S.saga(ledger.step("a"), ledger.step("b")).then(ledger.step("c", fail=True))

    e = err(await S.run(saga))

    assert e.error == "c unavailable"
    assert e.step_failed == 3
    assert e.compensators_run == 2
    assert e.rollback_complete
    assert ledger.log == ["reserve a", "reserve b", "fail c", "release b", "release a"]
    assert ledger.held == {"a": 0, "b": 0}


async def test_steps_after_failure_do_not_run(ledger):
    await S.run(S.saga(ledger.step("a", fail=True), ledger.step("b")))
    assert "reserve b" not in ledger.log


async def test_compensator_is_retried(ledger):
    ledger.fail_release["a"] = 2
    saga = (
        S.saga(ledger.step("a"), ledger.step("b", fail=True))
        .policy(S.policy.compensate.retry(times=3, delay=timedelta(0)))
    )

    e = err(await S.run(saga))

    assert e.rollback_complete
    assert ledger.held["a"] == 0


async def test_compensator_that_keeps_failing_is_reported(ledger):
    ledger.fail_release["a"] = 5
    saga = (
        S.saga(ledger.step("a"), ledger.step("x"), ledger.step("b", fail=True))
        .policy(S.policy.compensate.retry(times=2, delay=timedelta(0)))
    )

    e = err(await S.run(saga))

    assert not e.rollback_complete
    assert e.compensators_failed == 1
    assert e.compensators_run == 1
    assert ledger.held == {"a": 1, "x": 0}


async def test_deadline_rolls_back_and_reports_timeout(ledger):
    saga = (
        S.saga(ledger.step("a"), ledger.step("slow", delay=0.2))
        .policy(S.policy.timeout(seconds=0.05))
    )

    e = err(await S.run(saga))

    assert isinstance(e.error, S.StepTimeout)
    assert e.step_failed == 2
    # The slow step settled before rollback, so it was undone too.
    assert ledger.held == {"a": 0, "slow": 0}


async def test_cancellation_rolls_back_and_propagates(ledger):
    task = asyncio.create_task(
        S.run(S.saga(ledger.step("a"), ledger.step("slow", delay=0.2), ledger.step("never")))
    )
    await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert ledger.held == {"a": 0, "slow": 0}
    assert "reserve never" not in ledger.log


def test_policies_are_immutable_builders(ledger):
    base = S.saga(ledger.step("a"))
    timed = base.policy(S.policy.timeout(seconds=1))

    assert base.timeout is None
    assert timed.timeout is not None and timed.timeout.seconds == 1
    assert timed.retry is S.policy.ONCE


def test_retry_policy_needs_one_attempt():
    with pytest.raises(ValueError):
        S.policy.RetryPolicy(0, timedelta(0))
