"""
Error taxonomy.

Errors are values: they travel inside ``Error(...)`` and are never raised
through the domain layer. Every error has a stable ``code`` and a human
``message``; transports decide the status code.
"""

from __future__ import annotations

from dataclasses import dataclass

from shopkeep._types import OrderId, ProductId


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ShopError:
    code: str
    message: str


# ═══════════════════════════════════════════════════════════════════════════════
# Tenancy
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Unauthenticated(ShopError):
    code: str = "UNAUTHENTICATED"
    message: str = "No tenant could be resolved for this request"


# ═══════════════════════════════════════════════════════════════════════════════
# Cart / catalog
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class InvalidCart(ShopError):
    code: str = "INVALID_CART"
    message: str = "Cart is invalid"


@dataclass(frozen=True, slots=True)
class ProductNotFound(ShopError):
    product_id: ProductId | None = None
    code: str = "PRODUCT_NOT_FOUND"
    message: str = "Product not found"


@dataclass(frozen=True, slots=True)
class CustomerNotFound(ShopError):
    code: str = "CUSTOMER_NOT_FOUND"
    message: str = "Customer not found"


@dataclass(frozen=True, slots=True)
class OrderNotFound(ShopError):
    order_id: OrderId | None = None
    code: str = "ORDER_NOT_FOUND"
    message: str = "Order not found"


# ═══════════════════════════════════════════════════════════════════════════════
# Discounts
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class DiscountNotFound(ShopError):
    code: str = "DISCOUNT_NOT_FOUND"
    message: str = "Coupon code not found"


@dataclass(frozen=True, slots=True)
class DiscountInactive(ShopError):
    code: str = "DISCOUNT_INACTIVE"
    message: str = "Coupon is not active"


@dataclass(frozen=True, slots=True)
class DiscountNotYetStarted(ShopError):
    code: str = "DISCOUNT_NOT_YET_STARTED"
    message: str = "Coupon is not yet valid"


@dataclass(frozen=True, slots=True)
class DiscountExpired(ShopError):
    code: str = "DISCOUNT_EXPIRED"
    message: str = "Coupon has expired"


@dataclass(frozen=True, slots=True)
class DiscountLimitReached(ShopError):
    code: str = "DISCOUNT_LIMIT_REACHED"
    message: str = "Coupon usage limit reached"


type DiscountError = (
    DiscountNotFound
    | DiscountInactive
    | DiscountNotYetStarted
    | DiscountExpired
    | DiscountLimitReached
)


# ═══════════════════════════════════════════════════════════════════════════════
# Counters / infrastructure
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class InsufficientStock(ShopError):
    product_id: ProductId | None = None
    available: int = 0
    requested: int = 0
    code: str = "INSUFFICIENT_STOCK"
    message: str = "Insufficient stock"


@dataclass(frozen=True, slots=True)
class ConcurrencyConflict(ShopError):
    code: str = "CONCURRENCY_CONFLICT"
    message: str = "A concurrent update won the race; retry the checkout"


@dataclass(frozen=True, slots=True)
class CheckoutTimeout(ShopError):
    code: str = "CHECKOUT_TIMEOUT"
    message: str = "Checkout did not finish in time; nothing was committed"


@dataclass(frozen=True, slots=True)
class PersistenceFailure(ShopError):
    cause: Exception | None = None
    code: str = "PERSISTENCE_FAILURE"
    message: str = "Storage is unavailable"


type StockError = InsufficientStock | ProductNotFound | ConcurrencyConflict | PersistenceFailure


# ═══════════════════════════════════════════════════════════════════════════════
# Factories
# ═══════════════════════════════════════════════════════════════════════════════


class ShopErrors:
    @staticmethod
    def invalid_cart(msg: str) -> InvalidCart:
        return InvalidCart(message=msg)

    @staticmethod
    def product_not_found(product_id: ProductId) -> ProductNotFound:
        return ProductNotFound(
            product_id=product_id,
            message=f"Product {product_id.value} not found",
        )

    @staticmethod
    def insufficient_stock(
        product_id: ProductId, name: str, available: int, requested: int
    ) -> InsufficientStock:
        return InsufficientStock(
            product_id=product_id,
            available=available,
            requested=requested,
            message=(
                f"Insufficient stock for product '{name}'. "
                f"Available: {available}, Requested: {requested}"
            ),
        )

    @staticmethod
    def persistence(what: str, cause: Exception) -> PersistenceFailure:
        return PersistenceFailure(cause=cause, message=f"{what}: {cause}")

    @staticmethod
    def order_not_found(order_id: OrderId) -> OrderNotFound:
        return OrderNotFound(order_id=order_id, message=f"Order {order_id.value} not found")


__all__ = (
    "ShopError",
    "Unauthenticated",
    "InvalidCart",
    "ProductNotFound",
    "CustomerNotFound",
    "OrderNotFound",
    "DiscountNotFound",
    "DiscountInactive",
    "DiscountNotYetStarted",
    "DiscountExpired",
    "DiscountLimitReached",
    "DiscountError",
    "InsufficientStock",
    "ConcurrencyConflict",
    "CheckoutTimeout",
    "PersistenceFailure",
    "StockError",
    "ShopErrors",
)
