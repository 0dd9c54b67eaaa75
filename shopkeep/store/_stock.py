"""
StockLedger — the only writer of ``products.stock``.

Reserve is one conditional UPDATE: the ``stock >= quantity`` check and the
decrement happen in the same statement, so concurrent reservations can
never drive stock below zero. Release is the compensating increment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, cast

from kungfu import Error, Ok, Result
from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopkeep._types import ProductId, TenantId
from shopkeep.db import ProductTable
from shopkeep.domain import MAX_QUANTITY
from shopkeep.errors import ConcurrencyConflict, InvalidCart, ShopErrors, StockError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Reservation:
    """A committed stock decrement awaiting order commit or release."""

    tenant: TenantId
    product_id: ProductId
    quantity: int


class StockLedger:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def reserve(
        self, tenant: TenantId, product_id: ProductId, quantity: int
    ) -> Result[Reservation, StockError | InvalidCart]:
        if quantity <= 0:
            return Error(ShopErrors.invalid_cart(f"Quantity must be positive, got {quantity}"))
        if quantity > MAX_QUANTITY:
            return Error(ShopErrors.invalid_cart(f"Quantity must not exceed {MAX_QUANTITY}, got {quantity}"))
        try:
            async with self._session_factory() as session:
                result = cast(CursorResult[Any], await session.execute(
                    update(ProductTable)
                    .where(
                        ProductTable.tenant_id == tenant.value,
                        ProductTable.id == product_id.value,
                        ProductTable.stock >= quantity,
                    )
                    .values(stock=ProductTable.stock - quantity)
                    .execution_options(synchronize_session=False)
                ))
                await session.commit()
        except SQLAlchemyError as e:
            return Error(ShopErrors.persistence("Failed to reserve stock", e))

        if result.rowcount == 1:
            logger.debug("reserved %d of product %s for %s", quantity, product_id.value, tenant.value)
            return Ok(Reservation(tenant, product_id, quantity))
        return await self._shortfall(tenant, product_id, quantity)

    async def _shortfall(
        self, tenant: TenantId, product_id: ProductId, quantity: int
    ) -> Result[Reservation, StockError]:
        """Explain why a reservation matched no row."""
        try:
            async with self._session_factory() as session:
                row = await session.scalar(
                    select(ProductTable).where(
                        ProductTable.tenant_id == tenant.value,
                        ProductTable.id == product_id.value,
                    )
                )
        except SQLAlchemyError as e:
            return Error(ShopErrors.persistence("Failed to read stock", e))

        if row is None:
            return Error(ShopErrors.product_not_found(product_id))
        if row.stock < quantity:
            logger.info(
                "insufficient stock for product %s (%s): available %d, requested %d",
                product_id.value, tenant.value, row.stock, quantity,
            )
            return Error(ShopErrors.insufficient_stock(product_id, row.name, row.stock, quantity))
        # Stock was short when we tried and has been replenished since.
        return Error(ConcurrencyConflict())

    async def release(self, reservation: Reservation) -> None:
        """
        Give reserved units back.

        Raises on failure so the saga can retry and report it.
        """
        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(
                update(ProductTable)
                .where(
                    ProductTable.tenant_id == reservation.tenant.value,
                    ProductTable.id == reservation.product_id.value,
                )
                .values(stock=ProductTable.stock + reservation.quantity)
                .execution_options(synchronize_session=False)
            ))
            await session.commit()
        if result.rowcount != 1:
            raise LookupError(f"product {reservation.product_id.value} vanished before release")
        logger.debug(
            "released %d of product %s for %s",
            reservation.quantity, reservation.product_id.value, reservation.tenant.value,
        )

    async def level(self, tenant: TenantId, product_id: ProductId) -> Result[int | None, StockError]:
        """Current stock, or None for an unknown product."""
        try:
            async with self._session_factory() as session:
                return Ok(await session.scalar(
                    select(ProductTable.stock).where(
                        ProductTable.tenant_id == tenant.value,
                        ProductTable.id == product_id.value,
                    )
                ))
        except SQLAlchemyError as e:
            return Error(ShopErrors.persistence("Failed to read stock", e))


__all__ = ("Reservation", "StockLedger")
