"""
Demo data: two tenants whose product ids collide on purpose.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from kungfu import Error, Ok

from shopkeep._types import CustomerId, DiscountId, ProductId, TenantId
from shopkeep.domain import Customer, DiscountCode, Product
from shopkeep.pricing import money
from shopkeep.store import Catalog

logger = logging.getLogger(__name__)

ACME = TenantId("acme")
GLOBEX = TenantId("globex")


def products() -> list[Product]:
    return [
        Product(ProductId(1), ACME, "KB-01", "Mechanical Keyboard", money("89.90"), 10, 1),
        Product(ProductId(2), ACME, "MS-01", "Wireless Mouse", money("24.50"), 25, 1),
        Product(ProductId(3), ACME, "HD-01", "USB-C Hub", money("39.00"), 3, 2),
        Product(ProductId(1), GLOBEX, "TEA-GRN", "Green Tea", money("6.20"), 100, 7),
        Product(ProductId(2), GLOBEX, "TEA-BLK", "Black Tea", money("5.80"), 80, 7),
    ]


def customers() -> list[Customer]:
    return [
        Customer(CustomerId("c-100"), ACME, "Alice Nguyen", "0901234567", "12 Harbor St"),
        Customer(CustomerId("c-200"), ACME, "Bob Tran", "0912345678"),
        Customer(CustomerId("c-100"), GLOBEX, "Carol Pham", "0923456789"),
    ]


def discounts(now: datetime) -> list[DiscountCode]:
    month = timedelta(days=30)
    return [
        DiscountCode(
            DiscountId(1), ACME, "SALE10", money(10), now - month, now + month,
            usage_limit=5, description="10 off any order",
        ),
        DiscountCode(
            DiscountId(2), ACME, "WELCOME5", money(5), now - month, now + month,
            description="Welcome discount",
        ),
        DiscountCode(
            DiscountId(3), ACME, "SUMMER", money(15), now - 3 * month, now - 2 * month,
            description="Last season",
        ),
        DiscountCode(
            DiscountId(1), GLOBEX, "SALE10", money(2), now - month, now + month,
            usage_limit=1, description="Globex's own SALE10",
        ),
    ]


async def seed_all(catalog: Catalog, now: datetime) -> int:
    """Insert the demo rows. Returns how many were written."""
    written = 0
    rows = [
        *(catalog.add_product(p) for p in products()),
        *(catalog.add_customer(c) for c in customers()),
        *(catalog.add_discount(d) for d in discounts(now)),
    ]
    for add in rows:
        match await add:
            case Ok(_):
                written += 1
            case Error(e):
                logger.warning("seed row skipped: %s", e.message)
    logger.info("seeded %d demo rows", written)
    return written


__all__ = ("ACME", "GLOBEX", "products", "customers", "discounts", "seed_all")
