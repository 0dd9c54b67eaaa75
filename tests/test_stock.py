"""Tests for the stock ledger."""

import asyncio

import pytest
from kungfu import Ok

from shopkeep._types import ProductId
from shopkeep.domain import MAX_QUANTITY
from shopkeep.errors import InsufficientStock, InvalidCart, ProductNotFound
from shopkeep.store import Reservation

from support import add_product, err, ok, stock_of


async def test_reserve_then_release(service, acme):
    held = ok(await service.stock.reserve(acme, ProductId(1), 4))

    assert held == Reservation(acme, ProductId(1), 4)
    assert await stock_of(service, acme, 1) == 6

    await service.stock.release(held)
    assert await stock_of(service, acme, 1) == 10


async def test_reserve_exact_remaining_stock(service, acme):
    ok(await service.stock.reserve(acme, ProductId(3), 3))
    assert await stock_of(service, acme, 3) == 0


async def test_insufficient_stock_message(service, acme):
    e = err(await service.stock.reserve(acme, ProductId(3), 4))

    assert isinstance(e, InsufficientStock)
    assert (e.available, e.requested) == (3, 4)
    assert e.message == "Insufficient stock for product 'USB-C Hub'. Available: 3, Requested: 4"
    assert await stock_of(service, acme, 3) == 3


async def test_unknown_product(service, acme):
    e = err(await service.stock.reserve(acme, ProductId(999), 1))

    assert isinstance(e, ProductNotFound)
    assert e.product_id == ProductId(999)


@pytest.mark.parametrize("qty", [0, -1, MAX_QUANTITY + 1, 10**19])
async def test_out_of_range_quantity_is_rejected(service, acme, qty):
    assert isinstance(err(await service.stock.reserve(acme, ProductId(1), qty)), InvalidCart)
    assert await stock_of(service, acme, 1) == 10


async def test_tenants_do_not_share_stock(service, acme, globex):
    # Product 1 exists for both tenants.
    ok(await service.stock.reserve(acme, ProductId(1), 10))

    assert await stock_of(service, acme, 1) == 0
    assert await stock_of(service, globex, 1) == 100


async def test_level_of_unknown_product_is_none(service, acme):
    assert await stock_of(service, acme, 42) is None


async def test_release_of_vanished_product_raises(service, acme):
    with pytest.raises(LookupError):
        await service.stock.release(Reservation(acme, ProductId(42), 1))


async def test_concurrent_reservations_never_oversell(service, acme):
    await add_product(service, acme, 50, "1.00", 5)

    results = await asyncio.gather(
        *(service.stock.reserve(acme, ProductId(50), 1) for _ in range(12))
    )

    granted = [r for r in results if isinstance(r, Ok)]
    assert len(granted) == 5
    assert await stock_of(service, acme, 50) == 0
