"""
Quote inputs and output.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from shopkeep import discounts
from shopkeep._types import TenantId
from shopkeep.discounts import DiscountCheck, DiscountValidator
from shopkeep.domain import Cart, PriceBreakdown
from shopkeep.store import Catalog


@dataclass(frozen=True, slots=True)
class QuoteRequest:
    tenant: TenantId
    cart: Cart
    now: datetime


@dataclass(frozen=True, slots=True)
class QuoteDeps:
    catalog: Catalog
    validator: DiscountValidator


@dataclass(frozen=True, slots=True)
class Quote:
    """Priced cart plus what happened to the coupon, if one was given."""

    breakdown: PriceBreakdown
    coupon: DiscountCheck | None = None

    @property
    def coupon_applied(self) -> bool:
        return self.breakdown.discount is not None

    @property
    def coupon_message(self) -> str | None:
        if self.coupon is None:
            return None
        return discounts.message(self.coupon)


__all__ = ("QuoteRequest", "QuoteDeps", "Quote")
