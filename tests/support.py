"""Helpers shared by the test modules."""

from datetime import datetime, timedelta
from typing import Any

from kungfu import Error, Ok, Result

from shopkeep._types import CustomerId, DiscountId, ProductId, TenantId
from shopkeep.domain import Cart, CartItem, DiscountCode, Product
from shopkeep.pricing import money
from shopkeep.service import ShopService

NOW = datetime(2026, 3, 1, 12, 0, 0)


def clock() -> datetime:
    return NOW


def ok[T](result: Result[T, Any]) -> T:
    match result:
        case Ok(value):
            return value
        case Error(e):
            raise AssertionError(f"expected Ok, got Error({e!r})")
    raise AssertionError("unreachable")


def err[E](result: Result[Any, E]) -> E:
    match result:
        case Error(e):
            return e
        case Ok(value):
            raise AssertionError(f"expected Error, got Ok({value!r})")
    raise AssertionError("unreachable")


def cart(*items: tuple[int, int], code: str | None = None, customer: str | None = None) -> Cart:
    return Cart(
        items=tuple(CartItem(ProductId(pid), qty) for pid, qty in items),
        coupon_code=code,
        customer_id=CustomerId(customer) if customer else None,
    )


async def add_product(
    service: ShopService, tenant: TenantId, pid: int, price: str, stock: int, name: str = "Widget"
) -> Product:
    product = Product(ProductId(pid), tenant, f"SKU-{pid}", name, money(price), stock)
    return ok(await service.catalog.add_product(product))


async def add_discount(
    service: ShopService,
    tenant: TenantId,
    did: int,
    code: str,
    amount: str,
    *,
    usage_limit: int | None = None,
    used_count: int = 0,
    start: datetime = NOW - timedelta(days=1),
    end: datetime = NOW + timedelta(days=1),
    active: bool = True,
) -> DiscountCode:
    discount = DiscountCode(
        DiscountId(did), tenant, code, money(amount), start, end,
        usage_limit=usage_limit, used_count=used_count, is_active=active,
    )
    return ok(await service.catalog.add_discount(discount))


async def stock_of(service: ShopService, tenant: TenantId, pid: int) -> int | None:
    return ok(await service.stock.level(tenant, ProductId(pid)))


async def used_count(service: ShopService, tenant: TenantId, did: int) -> int:
    discount = ok(await service.discounts.get(tenant, DiscountId(did)))
    assert discount is not None
    return discount.used_count
