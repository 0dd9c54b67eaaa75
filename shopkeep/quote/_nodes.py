"""
Quote graph.

    QuoteRequest, QuoteDeps
        ├── PricedLinesNode   (catalog read)
        └── CouponNode        (discount check)     ← run concurrently
                 └── QuoteNode (pricing)

Nodes hold Results; a failing branch never raises through the graph.
"""

from kungfu import Error, Ok, Result
from nodnod import scalar_node as node

from shopkeep import pricing
from shopkeep.discounts import DiscountCheck, Valid
from shopkeep.domain import MAX_ID, MAX_QUANTITY, CartItem, PricedLine, ValidatedDiscount
from shopkeep.errors import PersistenceFailure, ShopError, ShopErrors
from shopkeep.quote._types import Quote, QuoteDeps, QuoteRequest


def merge_items(items: tuple[CartItem, ...]) -> tuple[CartItem, ...]:
    """One line per product, first-seen order, quantities summed."""
    totals: dict[int, int] = {}
    for item in items:
        totals[item.product_id.value] = totals.get(item.product_id.value, 0) + item.quantity
    seen: dict[int, CartItem] = {}
    for item in items:
        pid = item.product_id.value
        if pid not in seen:
            seen[pid] = CartItem(item.product_id, totals[pid])
    return tuple(seen.values())


@node
class PricedLinesNode:
    """Cart lines priced from the tenant's current catalog."""

    def __init__(self, result: Result[tuple[PricedLine, ...], ShopError]) -> None:
        self.result = result

    @classmethod
    async def __compose__(cls, request: QuoteRequest, deps: QuoteDeps) -> "PricedLinesNode":
        items = request.cart.items
        if not items:
            return cls(Error(ShopErrors.invalid_cart("Cart is empty")))
        for item in items:
            if not 0 < item.product_id.value <= MAX_ID:
                return cls(Error(ShopErrors.invalid_cart(
                    f"Product id {item.product_id.value} is out of range"
                )))
            if item.quantity <= 0:
                return cls(Error(ShopErrors.invalid_cart(
                    f"Quantity for product {item.product_id.value} must be positive"
                )))

        merged = merge_items(items)
        for item in merged:
            if item.quantity > MAX_QUANTITY:
                return cls(Error(ShopErrors.invalid_cart(
                    f"Quantity for product {item.product_id.value} exceeds {MAX_QUANTITY}"
                )))
        match await deps.catalog.products(request.tenant, (i.product_id for i in merged)):
            case Error(e):
                return cls(Error(e))
            case Ok(products):
                lines: list[PricedLine] = []
                for item in merged:
                    product = products.get(item.product_id)
                    if product is None:
                        return cls(Error(ShopErrors.product_not_found(item.product_id)))
                    lines.append(pricing.price_line(product, item.quantity))
                return cls(Ok(tuple(lines)))


@node
class CouponNode:
    """Read-only validity check of the supplied code; Ok(None) without one."""

    def __init__(self, result: Result[DiscountCheck | None, PersistenceFailure]) -> None:
        self.result = result

    @classmethod
    async def __compose__(cls, request: QuoteRequest, deps: QuoteDeps) -> "CouponNode":
        code = request.cart.normalized_code
        if code is None:
            return cls(Ok(None))
        return cls(await deps.validator.check(request.tenant, code, request.now))


@node
class QuoteNode:
    def __init__(self, result: Result[Quote, ShopError]) -> None:
        self.result = result

    @classmethod
    def __compose__(cls, lines: PricedLinesNode, coupon: CouponNode) -> "QuoteNode":
        match lines.result, coupon.result:
            case Error(e), _:
                return cls(Error(e))
            case _, Error(e):
                return cls(Error(e))
            case Ok(priced), Ok(check):
                discount: ValidatedDiscount | None = None
                if isinstance(check, Valid):
                    discount = ValidatedDiscount(
                        id=check.discount.id,
                        code=check.discount.code,
                        amount=check.discount.amount,
                    )
                return cls(Ok(Quote(pricing.compute(priced, discount), check)))
        raise AssertionError("unreachable")


__all__ = ("merge_items", "PricedLinesNode", "CouponNode", "QuoteNode")
