"""
Catalog — tenant-scoped reads and maintenance writes for products,
customers and discount codes.

Stock and usage counters are never written here; see StockLedger and
DiscountLedger.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any, cast

from combinators import lift as L
from kungfu import LazyCoroResult
from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopkeep import fuzzy
from shopkeep._types import CustomerId, ProductId, TenantId
from shopkeep.db import CustomerTable, ProductTable
from shopkeep.domain import Customer, DiscountCode, Product
from shopkeep.errors import PersistenceFailure, ShopErrors
from shopkeep.store._mapping import (
    customer_from_row,
    customer_to_row,
    discount_to_row,
    product_from_row,
    product_to_row,
)


class Catalog:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ───────────────────────────────────────────────────────────────────────────
    # Reads
    # ───────────────────────────────────────────────────────────────────────────

    def products(
        self, tenant: TenantId, ids: Iterable[ProductId]
    ) -> LazyCoroResult[dict[ProductId, Product], PersistenceFailure]:
        """Products of this tenant among ``ids``; unknown ids are absent."""
        wanted = sorted({pid.value for pid in ids})
        return L.catching_async(
            lambda: self._products(tenant, wanted),
            on_error=lambda e: ShopErrors.persistence("Failed to load products", e),
        )

    async def _products(self, tenant: TenantId, ids: list[int]) -> dict[ProductId, Product]:
        if not ids:
            return {}
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(ProductTable).where(
                    ProductTable.tenant_id == tenant.value,
                    ProductTable.id.in_(ids),
                )
            )
            return {ProductId(row.id): product_from_row(row) for row in rows}

    def customer(
        self, tenant: TenantId, customer_id: CustomerId
    ) -> LazyCoroResult[Customer | None, PersistenceFailure]:
        return L.catching_async(
            lambda: self._customer(tenant, customer_id),
            on_error=lambda e: ShopErrors.persistence("Failed to load customer", e),
        )

    async def _customer(self, tenant: TenantId, customer_id: CustomerId) -> Customer | None:
        async with self._session_factory() as session:
            row = await session.get(CustomerTable, (tenant.value, customer_id.value))
            return customer_from_row(row) if row is not None else None

    def search_products(
        self,
        tenant: TenantId,
        keyword: str | None,
        threshold: int = fuzzy.DEFAULT_THRESHOLD,
    ) -> LazyCoroResult[list[Product], PersistenceFailure]:
        """Fuzzy match on name or SKU. A blank keyword lists everything."""
        return L.catching_async(
            lambda: self._search_products(tenant, keyword, threshold),
            on_error=lambda e: ShopErrors.persistence("Failed to search products", e),
        )

    async def _search_products(
        self, tenant: TenantId, keyword: str | None, threshold: int
    ) -> list[Product]:
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(ProductTable)
                .where(ProductTable.tenant_id == tenant.value)
                .order_by(ProductTable.id)
            )
            products = [product_from_row(row) for row in rows]
        if keyword is None or not keyword.strip():
            return products
        return [
            p for p in products
            if fuzzy.match_any(keyword, p.name, p.sku, threshold=threshold)
        ]

    # ───────────────────────────────────────────────────────────────────────────
    # Maintenance writes
    # ───────────────────────────────────────────────────────────────────────────

    def add_product(self, product: Product) -> LazyCoroResult[Product, PersistenceFailure]:
        return self._add(product_to_row(product), product, "product")

    def add_customer(self, customer: Customer) -> LazyCoroResult[Customer, PersistenceFailure]:
        return self._add(customer_to_row(customer), customer, "customer")

    def add_discount(self, discount: DiscountCode) -> LazyCoroResult[DiscountCode, PersistenceFailure]:
        return self._add(discount_to_row(discount), discount, "discount")

    def _add[T](self, row: object, value: T, what: str) -> LazyCoroResult[T, PersistenceFailure]:
        async def insert() -> T:
            async with self._session_factory() as session:
                session.add(row)
                await session.commit()
            return value

        return L.catching_async(
            insert,
            on_error=lambda e: ShopErrors.persistence(f"Failed to add {what}", e),
        )

    def set_price(
        self, tenant: TenantId, product_id: ProductId, unit_price: Decimal
    ) -> LazyCoroResult[bool, PersistenceFailure]:
        """Change a catalog price. Existing order lines keep their snapshot."""

        async def write() -> bool:
            async with self._session_factory() as session:
                result = cast(CursorResult[Any], await session.execute(
                    update(ProductTable)
                    .where(
                        ProductTable.tenant_id == tenant.value,
                        ProductTable.id == product_id.value,
                    )
                    .values(unit_price=unit_price)
                    .execution_options(synchronize_session=False)
                ))
                await session.commit()
                return result.rowcount == 1

        return L.catching_async(
            write,
            on_error=lambda e: ShopErrors.persistence("Failed to set price", e),
        )


__all__ = ("Catalog",)
