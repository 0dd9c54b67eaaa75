"""
CheckoutTransaction — cart in, durable order out, or nothing at all.

    STARTED → VALIDATING → RESERVING → COMMITTING → COMMITTED
                  │            │            │
                  └────────────┴────────────┴──→ ABORTED

Validating recomputes the quote from current rows. Reserving is a saga of
conditional UPDATEs (stock per line, then the coupon's usage). Committing
writes order + lines + customer spend in one transaction. Any failure,
timeout or cancellation after a reservation undoes every reservation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from kungfu import Error, LazyCoroResult, Ok, Result

from shopkeep import quote as Q
from shopkeep import saga as S
from shopkeep._types import Clock, ProductId, TenantId, utcnow
from shopkeep.config import CouponPolicy, Settings
from shopkeep.discounts import DiscountValidator, Valid, as_result
from shopkeep.domain import Cart, Order, OrderDraft, OrderLine, PriceBreakdown, ValidatedDiscount
from shopkeep.errors import (
    CheckoutTimeout,
    CustomerNotFound,
    DiscountExpired,
    DiscountInactive,
    DiscountLimitReached,
    DiscountNotFound,
    DiscountNotYetStarted,
    PersistenceFailure,
    ShopError,
    ShopErrors,
)
from shopkeep.store import Catalog, Claim, OrderStore, Reservation

logger = logging.getLogger(__name__)

DISCOUNT_ERRORS = (
    DiscountNotFound,
    DiscountInactive,
    DiscountNotYetStarted,
    DiscountExpired,
    DiscountLimitReached,
)


# ═══════════════════════════════════════════════════════════════════════════════
# States
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutState(Enum):
    STARTED = "started"
    VALIDATING = "validating"
    RESERVING = "reserving"
    COMMITTING = "committing"
    COMMITTED = "committed"
    ABORTED = "aborted"


_NEXT: dict[CheckoutState, frozenset[CheckoutState]] = {
    CheckoutState.STARTED: frozenset({CheckoutState.VALIDATING}),
    CheckoutState.VALIDATING: frozenset({CheckoutState.RESERVING, CheckoutState.ABORTED}),
    CheckoutState.RESERVING: frozenset({CheckoutState.COMMITTING, CheckoutState.ABORTED}),
    CheckoutState.COMMITTING: frozenset({CheckoutState.COMMITTED, CheckoutState.ABORTED}),
    CheckoutState.COMMITTED: frozenset(),
    CheckoutState.ABORTED: frozenset(),
}


@dataclass(slots=True)
class CheckoutAttempt:
    """Trace of one attempt; pass one in to observe the transitions."""

    state: CheckoutState = CheckoutState.STARTED
    history: list[CheckoutState] = field(default_factory=lambda: [CheckoutState.STARTED])
    error: ShopError | None = None

    def advance(self, state: CheckoutState) -> None:
        if state not in _NEXT[self.state]:
            raise RuntimeError(f"illegal checkout transition {self.state.name} → {state.name}")
        logger.debug("checkout %s → %s", self.state.name, state.name)
        self.state = state
        self.history.append(state)

    def abort[T](self, error: ShopError) -> Result[T, ShopError]:
        self.advance(CheckoutState.ABORTED)
        self.error = error
        return Error(error)

    @property
    def finished(self) -> bool:
        return self.state in (CheckoutState.COMMITTED, CheckoutState.ABORTED)


# ═══════════════════════════════════════════════════════════════════════════════
# Collaborators
# ═══════════════════════════════════════════════════════════════════════════════


class Stock(Protocol):
    async def reserve(
        self, tenant: TenantId, product_id: ProductId, quantity: int
    ) -> Result[Reservation, Any]: ...

    async def release(self, reservation: Reservation) -> None: ...


class Usage(Protocol):
    async def claim(
        self, tenant: TenantId, discount: ValidatedDiscount, now: datetime
    ) -> Result[Claim, Any]: ...

    async def unclaim(self, claim: Claim) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Transaction
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutTransaction:
    def __init__(
        self,
        *,
        catalog: Catalog,
        validator: DiscountValidator,
        stock: Stock,
        usage: Usage,
        orders: OrderStore,
        settings: Settings = Settings(),
        clock: Clock = utcnow,
    ) -> None:
        self._catalog = catalog
        self._validator = validator
        self._stock = stock
        self._usage = usage
        self._orders = orders
        self._settings = settings
        self._clock = clock

    async def run(
        self,
        tenant: TenantId,
        cart: Cart,
        attempt: CheckoutAttempt | None = None,
    ) -> Result[Order, ShopError]:
        attempt = attempt if attempt is not None else CheckoutAttempt()
        result = await self._attempt(tenant, cart, attempt)

        match result:
            case Error(e) if (
                isinstance(e, DISCOUNT_ERRORS)
                and cart.normalized_code is not None
                and self._settings.coupon_policy is CouponPolicy.LENIENT
            ):
                # The last use went to a concurrent checkout; charge full price.
                logger.info("coupon %s lost during reservation, retrying without it", cart.normalized_code)
                retry = CheckoutAttempt()
                result = await self._attempt(tenant, replace(cart, coupon_code=None), retry)
                attempt.history.extend(retry.history)
                attempt.state, attempt.error = retry.state, retry.error
            case _:
                pass

        match result:
            case Ok(order):
                logger.info(
                    "checkout committed order %d for %s (final %s)",
                    order.id.value, tenant.value, order.final_amount,
                )
            case Error(e):
                logger.warning("checkout aborted for %s: %s %s", tenant.value, e.code, e.message)
        return result

    # ───────────────────────────────────────────────────────────────────────────
    # Phases
    # ───────────────────────────────────────────────────────────────────────────

    async def _attempt(
        self, tenant: TenantId, cart: Cart, attempt: CheckoutAttempt
    ) -> Result[Order, ShopError]:
        now = self._clock()

        attempt.advance(CheckoutState.VALIDATING)
        match await self._validate(tenant, cart, now):
            case Error(e):
                return attempt.abort(e)
            case Ok(breakdown):
                pass

        attempt.advance(CheckoutState.RESERVING)
        match await S.run(self._reservations(tenant, breakdown, now)):
            case Error(saga_error):
                if not saga_error.rollback_complete:
                    logger.error(
                        "checkout rollback incomplete for %s: %d compensator(s) failed",
                        tenant.value, saga_error.compensators_failed,
                    )
                if isinstance(saga_error.error, S.StepTimeout):
                    return attempt.abort(CheckoutTimeout())
                return attempt.abort(saga_error.error)
            case Ok(reserved):
                held = list(reserved.value)

        attempt.advance(CheckoutState.COMMITTING)
        match await self._commit(_draft(tenant, cart, breakdown, now), held):
            case Error(e):
                return attempt.abort(e)
            case Ok(order):
                attempt.advance(CheckoutState.COMMITTED)
                return Ok(order)

    async def _validate(
        self, tenant: TenantId, cart: Cart, now: datetime
    ) -> Result[PriceBreakdown, ShopError]:
        deps = Q.QuoteDeps(catalog=self._catalog, validator=self._validator)
        match await Q.quote(Q.QuoteRequest(tenant, cart, now), deps):
            case Error(e):
                return Error(e)
            case Ok(quoted):
                pass

        if quoted.coupon is not None and not isinstance(quoted.coupon, Valid):
            if self._settings.coupon_policy is CouponPolicy.STRICT:
                match as_result(quoted.coupon):
                    case Error(e):
                        return Error(e)
                    case Ok(_):
                        pass
            logger.info("ignoring invalid coupon %r for %s", cart.normalized_code, tenant.value)

        if cart.customer_id is not None:
            match await self._catalog.customer(tenant, cart.customer_id):
                case Error(e):
                    return Error(e)
                case Ok(None):
                    return Error(CustomerNotFound(
                        message=f"Customer {cart.customer_id.value} not found",
                    ))
                case Ok(_):
                    pass

        return Ok(quoted.breakdown)

    def _reservations(
        self, tenant: TenantId, breakdown: PriceBreakdown, now: datetime
    ) -> S.Saga[Any, ShopError]:
        steps: list[S.SagaStep[Any, ShopError]] = [
            S.step(
                LazyCoroResult(
                    lambda pid=line.product_id, qty=line.quantity: self._stock.reserve(tenant, pid, qty)
                ),
                compensate=self._stock.release,
                name=f"reserve:{line.product_id.value}",
            )
            for line in breakdown.lines
        ]
        if breakdown.discount is not None:
            discount = breakdown.discount
            steps.append(S.step(
                LazyCoroResult(lambda: self._usage.claim(tenant, discount, now)),
                compensate=self._usage.unclaim,
                name=f"claim:{discount.code}",
            ))
        return (
            S.saga(*steps)
            .policy(self._settings.reservation_timeout)
            .policy(self._settings.compensation_retry)
        )

    async def _commit(
        self, draft: OrderDraft, held: list[Reservation | Claim]
    ) -> Result[Order, CustomerNotFound | PersistenceFailure]:
        """
        Insert the order. Once the insert is in flight it is allowed to
        settle even if the caller is cancelled; held counters are released
        unless the order was durably written. An insert that raises counts
        as a failed write.
        """
        write = asyncio.ensure_future(self._orders.insert(draft))
        result: Result[Order, CustomerNotFound | PersistenceFailure] | None = None
        try:
            result = await asyncio.shield(write)
        except asyncio.CancelledError:
            result = await _settled(write)
            raise
        except Exception as e:
            logger.exception("order insert raised for %s", draft.tenant.value)
            result = Error(ShopErrors.persistence("Failed to write order", e))
        finally:
            if not isinstance(result, Ok):
                await self._release(held)
        return result

    async def _release(self, held: list[Reservation | Claim]) -> None:
        recorded: list[tuple[str, Any, S.CompensatorWithValue[Any]]] = []
        for item in held:
            match item:
                case Reservation():
                    recorded.append((f"reserve:{item.product_id.value}", item, self._stock.release))
                case Claim():
                    recorded.append((f"claim:{item.code}", item, self._usage.unclaim))
        _, failed = await S.run_compensators(recorded, self._settings.compensation_retry)
        if failed:
            logger.error("%d reservation(s) could not be released after a failed commit", failed)


async def _settled[T](write: asyncio.Future[T]) -> T | None:
    """Outcome of an insert that outlived its caller; None if it raised."""
    try:
        return await write
    except Exception:
        logger.exception("order insert raised after cancellation")
        return None


def _draft(tenant: TenantId, cart: Cart, breakdown: PriceBreakdown, now: datetime) -> OrderDraft:
    return OrderDraft(
        tenant=tenant,
        customer_id=cart.customer_id,
        lines=tuple(
            OrderLine(
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price_at_purchase=line.unit_price,
                line_total=line.line_total,
            )
            for line in breakdown.lines
        ),
        subtotal=breakdown.subtotal,
        discount_amount=breakdown.discount_amount,
        final_amount=breakdown.final_amount,
        applied_code=breakdown.discount.code if breakdown.discount is not None else None,
        created_at=now,
    )


__all__ = (
    "CheckoutState",
    "CheckoutAttempt",
    "CheckoutTransaction",
    "Stock",
    "Usage",
)
