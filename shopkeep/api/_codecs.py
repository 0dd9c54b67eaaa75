"""
Request/response models for the HTTP surface.

Field names are camelCase on the wire. Money goes out as a string with two
decimals and comes in as a string or integer, never as a float.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, RootModel
from pydantic.alias_generators import to_camel

from shopkeep._types import CustomerId, OrderId, ProductId
from shopkeep.domain import (
    MAX_ID,
    MAX_QUANTITY,
    Cart,
    CartItem,
    DiscountCode,
    Order,
    OrderFilters,
    OrderLine,
    OrderStatus,
    OrderSummary,
    PageRequest,
    Paged,
    PricedLine,
    SortField,
)
from shopkeep.pricing import money
from shopkeep.quote import Quote

Money = Annotated[Decimal, PlainSerializer(lambda d: f"{d:.2f}", return_type=str)]


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


class CartItemIn(WireModel):
    product_id: int = Field(le=MAX_ID)
    quantity: int = Field(le=MAX_QUANTITY)


class PreviewIn(WireModel):
    items: list[CartItemIn] = Field(default_factory=list[CartItemIn])
    coupon_code: str | None = None

    def to_domain(self) -> Cart:
        return Cart(
            items=tuple(CartItem(ProductId(i.product_id), i.quantity) for i in self.items),
            coupon_code=self.coupon_code,
        )


class CheckoutIn(PreviewIn):
    customer_id: str | None = None

    def to_domain(self) -> Cart:
        cart = super().to_domain()
        customer = self.customer_id.strip() if self.customer_id else None
        return Cart(
            items=cart.items,
            coupon_code=cart.coupon_code,
            customer_id=CustomerId(customer) if customer else None,
        )


class LineOut(WireModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Money
    line_total: Money

    @classmethod
    def from_priced(cls, line: PricedLine) -> LineOut:
        return cls(
            product_id=line.product_id.value,
            product_name=line.product_name,
            quantity=line.quantity,
            unit_price=line.unit_price,
            line_total=line.line_total,
        )

    @classmethod
    def from_order_line(cls, line: OrderLine) -> LineOut:
        return cls(
            product_id=line.product_id.value,
            product_name=line.product_name,
            quantity=line.quantity,
            unit_price=line.unit_price_at_purchase,
            line_total=line.line_total,
        )


class PreviewOut(WireModel):
    subtotal: Money
    discount_amount: Money
    final_amount: Money
    coupon_message: str | None = None
    coupon_applied: bool = False
    lines: list[LineOut] = Field(default_factory=list[LineOut])

    @classmethod
    def from_domain(cls, dom: Quote) -> PreviewOut:
        b = dom.breakdown
        return cls(
            subtotal=b.subtotal,
            discount_amount=b.discount_amount,
            final_amount=b.final_amount,
            coupon_message=dom.coupon_message,
            coupon_applied=dom.coupon_applied,
            lines=[LineOut.from_priced(line) for line in b.lines],
        )


class CheckoutOut(WireModel):
    order_id: int
    final_amount: Money
    message: str = "Order created successfully"

    @classmethod
    def from_domain(cls, dom: Order) -> CheckoutOut:
        return cls(order_id=dom.id.value, final_amount=dom.final_amount)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderRef(WireModel):
    def to_domain(self, orderId: int) -> OrderId:
        return OrderId(orderId)


class OrderOut(WireModel):
    id: int
    customer_id: str | None
    applied_code: str | None
    subtotal: Money
    discount_amount: Money
    final_amount: Money
    status: OrderStatus
    created_at: datetime
    lines: list[LineOut]

    @classmethod
    def from_domain(cls, dom: Order) -> OrderOut:
        return cls(
            id=dom.id.value,
            customer_id=dom.customer_id.value if dom.customer_id is not None else None,
            applied_code=dom.applied_code,
            subtotal=dom.subtotal,
            discount_amount=dom.discount_amount,
            final_amount=dom.final_amount,
            status=dom.status,
            created_at=dom.created_at,
            lines=[LineOut.from_order_line(line) for line in dom.lines],
        )


class OrderListIn(WireModel):
    search: str | None = None
    status: OrderStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    min_amount: Decimal | None = Field(default=None, ge=0)
    max_amount: Decimal | None = Field(default=None, ge=0)
    sort_by: SortField = SortField.DATE
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=100)

    def to_domain(self) -> tuple[OrderFilters, PageRequest]:
        filters = OrderFilters(
            search=self.search,
            status=self.status,
            start_date=self.start_date,
            end_date=self.end_date,
            min_amount=money(self.min_amount) if self.min_amount is not None else None,
            max_amount=money(self.max_amount) if self.max_amount is not None else None,
            sort_by=self.sort_by,
            descending=self.sort_order == "desc",
        )
        return filters, PageRequest(page=self.page, size=self.page_size)


class OrderSummaryOut(WireModel):
    id: int
    customer_name: str
    customer_phone: str | None
    applied_code: str | None
    item_count: int
    subtotal: Money
    discount_amount: Money
    final_amount: Money
    status: OrderStatus
    created_at: datetime

    @classmethod
    def from_summary(cls, s: OrderSummary) -> OrderSummaryOut:
        return cls(
            id=s.id.value,
            customer_name=s.customer_name,
            customer_phone=s.customer_phone,
            applied_code=s.applied_code,
            item_count=s.item_count,
            subtotal=s.subtotal,
            discount_amount=s.discount_amount,
            final_amount=s.final_amount,
            status=s.status,
            created_at=s.created_at,
        )


class OrderPageOut(WireModel):
    items: list[OrderSummaryOut]
    total_count: int
    total_pages: int
    current_page: int
    page_size: int

    @classmethod
    def from_domain(cls, dom: Paged[OrderSummary]) -> OrderPageOut:
        return cls(
            items=[OrderSummaryOut.from_summary(s) for s in dom.items],
            total_count=dom.total_count,
            total_pages=dom.total_pages,
            current_page=dom.current_page,
            page_size=dom.page_size,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


class CouponsIn(WireModel):
    def to_domain(self) -> None:
        return None


class CouponOut(WireModel):
    id: int
    code: str
    description: str | None
    amount: Money
    start_date: datetime
    end_date: datetime
    usage_limit: int | None
    used_count: int

    @classmethod
    def from_discount(cls, d: DiscountCode) -> CouponOut:
        return cls(
            id=d.id.value,
            code=d.code,
            description=d.description,
            amount=d.amount,
            start_date=d.start_date,
            end_date=d.end_date,
            usage_limit=d.usage_limit,
            used_count=d.used_count,
        )


class CouponsOut(RootModel[list[CouponOut]]):
    @classmethod
    def from_domain(cls, dom: list[DiscountCode]) -> CouponsOut:
        return cls([CouponOut.from_discount(d) for d in dom])


__all__ = (
    "Money",
    "WireModel",
    "CartItemIn",
    "PreviewIn",
    "CheckoutIn",
    "LineOut",
    "PreviewOut",
    "CheckoutOut",
    "OrderRef",
    "OrderOut",
    "OrderListIn",
    "OrderSummaryOut",
    "OrderPageOut",
    "CouponsIn",
    "CouponOut",
    "CouponsOut",
)
