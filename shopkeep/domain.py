"""
Domain — tenant-owned shop entities and checkout values.

Money is ``Decimal`` with two places everywhere in this layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from shopkeep._types import CustomerId, DiscountId, OrderId, ProductId, TenantId


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Product:
    id: ProductId
    tenant: TenantId
    sku: str
    name: str
    unit_price: Decimal
    stock: int
    category_id: int | None = None


@dataclass(frozen=True, slots=True)
class Customer:
    id: CustomerId
    tenant: TenantId
    name: str
    phone_number: str | None = None
    address: str | None = None
    total_spent: Decimal = Decimal("0.00")


@dataclass(frozen=True, slots=True)
class DiscountCode:
    id: DiscountId
    tenant: TenantId
    code: str
    amount: Decimal
    start_date: datetime
    end_date: datetime
    usage_limit: int | None = None
    used_count: int = 0
    is_active: bool = True
    description: str | None = None

    @property
    def remaining(self) -> int | None:
        """Uses left, or None when unlimited."""
        if self.usage_limit is None:
            return None
        return max(self.usage_limit - self.used_count, 0)


# ═══════════════════════════════════════════════════════════════════════════════
# Cart (request side)
# ═══════════════════════════════════════════════════════════════════════════════


MAX_QUANTITY = 10_000
"""Largest quantity of one product a cart may hold."""

MAX_ID = 2**31 - 1
"""Largest product id a cart may name."""


@dataclass(frozen=True, slots=True)
class CartItem:
    product_id: ProductId
    quantity: int


@dataclass(frozen=True, slots=True)
class Cart:
    items: tuple[CartItem, ...]
    coupon_code: str | None = None
    customer_id: CustomerId | None = None

    @property
    def normalized_code(self) -> str | None:
        if self.coupon_code is None or not self.coupon_code.strip():
            return None
        return self.coupon_code.strip()


# ═══════════════════════════════════════════════════════════════════════════════
# Pricing
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PricedLine:
    product_id: ProductId
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True, slots=True)
class ValidatedDiscount:
    id: DiscountId
    code: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class PriceBreakdown:
    lines: tuple[PricedLine, ...]
    subtotal: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    discount: ValidatedDiscount | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(Enum):
    NEW = "new"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class OrderLine:
    product_id: ProductId
    product_name: str
    quantity: int
    unit_price_at_purchase: Decimal
    line_total: Decimal


@dataclass(frozen=True, slots=True)
class OrderDraft:
    """Everything checkout knows before the order row exists."""

    tenant: TenantId
    customer_id: CustomerId | None
    lines: tuple[OrderLine, ...]
    subtotal: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    applied_code: str | None
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Order:
    id: OrderId
    tenant: TenantId
    customer_id: CustomerId | None
    lines: tuple[OrderLine, ...]
    subtotal: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    applied_code: str | None
    status: OrderStatus
    created_at: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════════════════════════


class SortField(Enum):
    DATE = "date"
    AMOUNT = "amount"
    CUSTOMER = "customer"
    STATUS = "status"


@dataclass(frozen=True, slots=True)
class OrderFilters:
    search: str | None = None
    status: OrderStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    sort_by: SortField = SortField.DATE
    descending: bool = True


@dataclass(frozen=True, slots=True)
class PageRequest:
    page: int = 1
    size: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= self.size <= 100:
            raise ValueError("page size must be between 1 and 100")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


@dataclass(frozen=True, slots=True)
class OrderSummary:
    id: OrderId
    customer_name: str
    customer_phone: str | None
    applied_code: str | None
    item_count: int
    subtotal: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    status: OrderStatus
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Paged[T]:
    items: tuple[T, ...]
    total_count: int
    current_page: int
    page_size: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "total_pages", -(-self.total_count // self.page_size) if self.total_count else 0
        )


__all__ = (
    "Product",
    "Customer",
    "DiscountCode",
    "MAX_QUANTITY",
    "MAX_ID",
    "CartItem",
    "Cart",
    "PricedLine",
    "ValidatedDiscount",
    "PriceBreakdown",
    "OrderStatus",
    "OrderLine",
    "OrderDraft",
    "Order",
    "SortField",
    "OrderFilters",
    "PageRequest",
    "OrderSummary",
    "Paged",
)
