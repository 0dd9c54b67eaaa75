"""
Discount validation.

``classify`` turns a looked-up code into exactly one tag of
``DiscountCheck``; callers ``match`` on it, so a new case cannot be
silently ignored. Validation never touches ``used_count``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, assert_never

from kungfu import Error, Ok, Result

from shopkeep._types import TenantId
from shopkeep.domain import DiscountCode, ValidatedDiscount
from shopkeep.errors import (
    DiscountError,
    DiscountExpired,
    DiscountInactive,
    DiscountLimitReached,
    DiscountNotFound,
    DiscountNotYetStarted,
    PersistenceFailure,
)


# ═══════════════════════════════════════════════════════════════════════════════
# DiscountCheck — tagged validity
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Valid:
    discount: DiscountCode


@dataclass(frozen=True, slots=True)
class NotFound:
    code: str


@dataclass(frozen=True, slots=True)
class Inactive:
    discount: DiscountCode


@dataclass(frozen=True, slots=True)
class NotYetStarted:
    discount: DiscountCode


@dataclass(frozen=True, slots=True)
class Expired:
    discount: DiscountCode


@dataclass(frozen=True, slots=True)
class LimitReached:
    discount: DiscountCode


type DiscountCheck = Valid | NotFound | Inactive | NotYetStarted | Expired | LimitReached


def classify(code: str, discount: DiscountCode | None, now: datetime) -> DiscountCheck:
    """Order of checks decides which reason a caller sees first."""
    if discount is None:
        return NotFound(code)
    if not discount.is_active:
        return Inactive(discount)
    if now < discount.start_date:
        return NotYetStarted(discount)
    if now > discount.end_date:
        return Expired(discount)
    if discount.usage_limit is not None and discount.used_count >= discount.usage_limit:
        return LimitReached(discount)
    return Valid(discount)


def as_result(check: DiscountCheck) -> Result[ValidatedDiscount, DiscountError]:
    match check:
        case Valid(discount):
            return Ok(ValidatedDiscount(id=discount.id, code=discount.code, amount=discount.amount))
        case NotFound():
            return Error(DiscountNotFound())
        case Inactive():
            return Error(DiscountInactive())
        case NotYetStarted():
            return Error(DiscountNotYetStarted())
        case Expired():
            return Error(DiscountExpired())
        case LimitReached():
            return Error(DiscountLimitReached())
        case _:
            assert_never(check)


def message(check: DiscountCheck) -> str:
    """Text shown next to a previewed cart."""
    match check:
        case Valid(discount):
            return f"Coupon '{discount.code}' applied successfully"
        case _:
            match as_result(check):
                case Error(e):
                    return e.message
                case Ok(_):
                    raise AssertionError("non-valid check produced a discount")


# ═══════════════════════════════════════════════════════════════════════════════
# Validator
# ═══════════════════════════════════════════════════════════════════════════════


class DiscountLookup(Protocol):
    async def find(
        self, tenant: TenantId, code: str
    ) -> Result[DiscountCode | None, PersistenceFailure]: ...

    async def list_valid(
        self, tenant: TenantId, now: datetime
    ) -> Result[list[DiscountCode], PersistenceFailure]: ...


class DiscountValidator:
    def __init__(self, discounts: DiscountLookup) -> None:
        self._discounts = discounts

    async def check(
        self, tenant: TenantId, code: str, now: datetime
    ) -> Result[DiscountCheck, PersistenceFailure]:
        code = code.strip()
        match await self._discounts.find(tenant, code):
            case Ok(discount):
                return Ok(classify(code, discount, now))
            case Error(e):
                return Error(e)

    async def validate(
        self, tenant: TenantId, code: str, now: datetime
    ) -> Result[ValidatedDiscount, DiscountError | PersistenceFailure]:
        match await self.check(tenant, code, now):
            case Ok(check):
                return as_result(check)
            case Error(e):
                return Error(e)

    async def available(
        self, tenant: TenantId, now: datetime
    ) -> Result[list[DiscountCode], PersistenceFailure]:
        """Codes usable right now, biggest amount first."""
        match await self._discounts.list_valid(tenant, now):
            case Ok(codes):
                valid = [d for d in codes if isinstance(classify(d.code, d, now), Valid)]
                return Ok(sorted(valid, key=lambda d: d.amount, reverse=True))
            case Error(e):
                return Error(e)


__all__ = (
    "Valid",
    "NotFound",
    "Inactive",
    "NotYetStarted",
    "Expired",
    "LimitReached",
    "DiscountCheck",
    "classify",
    "as_result",
    "message",
    "DiscountLookup",
    "DiscountValidator",
)
