"""Tests for cart preview."""

import pytest

from shopkeep.domain import MAX_ID, MAX_QUANTITY
from shopkeep.errors import InvalidCart, ProductNotFound
from shopkeep.pricing import money

from support import add_discount, cart, err, ok, stock_of, used_count


async def test_preview_prices_cart_with_coupon(service, acme):
    quote = ok(await service.preview(acme, cart((1, 1), (2, 2), code="SALE10")))
    b = quote.breakdown

    assert [(line.product_name, line.line_total) for line in b.lines] == [
        ("Mechanical Keyboard", money("89.90")),
        ("Wireless Mouse", money("49.00")),
    ]
    assert b.subtotal == money("138.90")
    assert b.discount_amount == money("10.00")
    assert b.final_amount == money("128.90")
    assert quote.coupon_applied
    assert quote.coupon_message == "Coupon 'SALE10' applied successfully"


async def test_preview_writes_nothing(service, acme):
    first = ok(await service.preview(acme, cart((3, 3), code="SALE10")))
    second = ok(await service.preview(acme, cart((3, 3), code="SALE10")))

    assert first == second
    assert await stock_of(service, acme, 3) == 3
    assert await used_count(service, acme, 1) == 0


async def test_preview_ignores_stock_levels(service, acme):
    # Only checkout reserves; preview prices whatever is asked.
    quote = ok(await service.preview(acme, cart((3, 50))))
    assert quote.breakdown.final_amount == money("1950.00")


async def test_expired_coupon_is_reported_not_applied(service, acme):
    quote = ok(await service.preview(acme, cart((1, 1), code="SUMMER")))

    assert not quote.coupon_applied
    assert quote.coupon_message == "Coupon has expired"
    assert quote.breakdown.discount_amount == money("0")
    assert quote.breakdown.final_amount == money("89.90")


async def test_blank_coupon_is_no_coupon(service, acme):
    quote = ok(await service.preview(acme, cart((1, 1), code="   ")))

    assert quote.coupon is None
    assert quote.coupon_message is None


async def test_repeated_products_are_merged(service, acme):
    quote = ok(await service.preview(acme, cart((2, 1), (1, 1), (2, 3))))

    assert [(line.product_id.value, line.quantity) for line in quote.breakdown.lines] == [(2, 4), (1, 1)]


async def test_discount_never_exceeds_subtotal(service, globex):
    await add_discount(service, globex, 9, "BIGGER", "50")

    b = ok(await service.preview(globex, cart((2, 1), code="BIGGER"))).breakdown

    assert b.discount_amount == money("5.80")
    assert b.final_amount == money("0.00")


async def test_empty_cart(service, acme):
    assert isinstance(err(await service.preview(acme, cart())), InvalidCart)


async def test_non_positive_quantity(service, acme):
    assert isinstance(err(await service.preview(acme, cart((1, 0)))), InvalidCart)


@pytest.mark.parametrize("items", [
    [(1, MAX_QUANTITY + 1)],
    [(1, 10**19)],
    [(1, MAX_QUANTITY), (1, 1)],
    [(MAX_ID + 1, 1)],
    [(10**19, 1)],
    [(-1, 1)],
])
async def test_out_of_range_cart_is_invalid(service, acme, items):
    assert isinstance(err(await service.preview(acme, cart(*items))), InvalidCart)


async def test_largest_quantity_is_priced(service, acme):
    quote = ok(await service.preview(acme, cart((2, MAX_QUANTITY))))
    assert quote.breakdown.final_amount == money("245000.00")


async def test_unknown_product(service, acme):
    e = err(await service.preview(acme, cart((1, 1), (404, 1))))

    assert isinstance(e, ProductNotFound)
    assert e.message == "Product 404 not found"


async def test_products_are_tenant_scoped(service, globex):
    # Product 3 only exists for acme.
    assert isinstance(err(await service.preview(globex, cart((3, 1)))), ProductNotFound)
