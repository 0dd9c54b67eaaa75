"""
Pricing — pure order arithmetic.

No I/O and no tenant: inputs are already scoped. Same inputs, same output,
so preview and checkout agree on a cart until the catalog changes.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from shopkeep.domain import PriceBreakdown, PricedLine, Product, ValidatedDiscount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value: Decimal | int | str) -> Decimal:
    """Quantize to cents. Floats are refused."""
    if isinstance(value, float):
        raise TypeError("money must not be built from float")
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def price_line(product: Product, quantity: int) -> PricedLine:
    unit_price = money(product.unit_price)
    return PricedLine(
        product_id=product.id,
        product_name=product.name,
        quantity=quantity,
        unit_price=unit_price,
        line_total=money(unit_price * quantity),
    )


def compute(
    lines: Iterable[PricedLine],
    discount: ValidatedDiscount | None = None,
) -> PriceBreakdown:
    """
    Subtotal, discount and final amount for priced lines.

    The flat discount is clamped to the subtotal so the final amount is
    never negative.
    """
    lines = tuple(lines)
    subtotal = money(sum((line.line_total for line in lines), ZERO))
    discount_amount = ZERO
    if discount is not None:
        discount_amount = min(money(discount.amount), subtotal)
    return PriceBreakdown(
        lines=lines,
        subtotal=subtotal,
        discount_amount=discount_amount,
        final_amount=subtotal - discount_amount,
        discount=discount,
    )


__all__ = ("CENT", "ZERO", "money", "price_line", "compute")
