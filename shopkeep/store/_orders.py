"""
OrderStore — orders and their lines, always filtered by tenant.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import Any, cast

from combinators import lift as L
from kungfu import Error, LazyCoroResult, Ok, Result
from sqlalchemy import Select, String, and_, func, or_, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopkeep._types import OrderId, TenantId
from shopkeep.db import CustomerTable, OrderTable
from shopkeep.domain import (
    Order,
    OrderDraft,
    OrderFilters,
    OrderStatus,
    OrderSummary,
    PageRequest,
    Paged,
    SortField,
)
from shopkeep.errors import CustomerNotFound, OrderNotFound, PersistenceFailure, ShopErrors
from shopkeep.store._mapping import order_from_row, order_to_row

logger = logging.getLogger(__name__)

GUEST = "Guest"


class OrderStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ───────────────────────────────────────────────────────────────────────────
    # Insert
    # ───────────────────────────────────────────────────────────────────────────

    async def insert(
        self, draft: OrderDraft
    ) -> Result[Order, CustomerNotFound | PersistenceFailure]:
        """
        Write the order, its lines and the customer's spend in one transaction.

        Either all of it is committed or none of it.
        """
        try:
            async with self._session_factory() as session:
                if draft.customer_id is not None:
                    spent = cast(CursorResult[Any], await session.execute(
                        update(CustomerTable)
                        .where(
                            CustomerTable.tenant_id == draft.tenant.value,
                            CustomerTable.id == draft.customer_id.value,
                        )
                        .values(total_spent=CustomerTable.total_spent + draft.final_amount)
                        .execution_options(synchronize_session=False)
                    ))
                    if spent.rowcount != 1:
                        await session.rollback()
                        return Error(CustomerNotFound(
                            message=f"Customer {draft.customer_id.value} not found",
                        ))

                row = order_to_row(draft)
                session.add(row)
                await session.commit()
                order = order_from_row(row)
        except SQLAlchemyError as e:
            return Error(ShopErrors.persistence("Failed to write order", e))

        logger.info(
            "order %d committed for %s: final %s",
            order.id.value, draft.tenant.value, order.final_amount,
        )
        return Ok(order)

    # ───────────────────────────────────────────────────────────────────────────
    # Reads
    # ───────────────────────────────────────────────────────────────────────────

    async def get_by_id(
        self, tenant: TenantId, order_id: OrderId
    ) -> Result[Order, OrderNotFound | PersistenceFailure]:
        try:
            async with self._session_factory() as session:
                row = await session.scalar(
                    select(OrderTable).where(
                        OrderTable.tenant_id == tenant.value,
                        OrderTable.id == order_id.value,
                    )
                )
                if row is None:
                    return Error(ShopErrors.order_not_found(order_id))
                return Ok(order_from_row(row))
        except SQLAlchemyError as e:
            return Error(ShopErrors.persistence("Failed to load order", e))

    def list(
        self,
        tenant: TenantId,
        filters: OrderFilters = OrderFilters(),
        page: PageRequest = PageRequest(),
    ) -> LazyCoroResult[Paged[OrderSummary], PersistenceFailure]:
        return L.catching_async(
            lambda: self._list(tenant, filters, page),
            on_error=lambda e: ShopErrors.persistence("Failed to list orders", e),
        )

    async def _list(
        self, tenant: TenantId, filters: OrderFilters, page: PageRequest
    ) -> Paged[OrderSummary]:
        stmt = _filtered(tenant, filters)
        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(stmt.subquery())
            ) or 0
            rows = (await session.execute(
                _sorted(stmt, filters).offset(page.offset).limit(page.size)
            )).all()

        items = tuple(
            OrderSummary(
                id=OrderId(order.id),
                customer_name=name or GUEST,
                customer_phone=phone,
                applied_code=order.applied_code,
                item_count=sum(line.quantity for line in order.lines),
                subtotal=order.subtotal,
                discount_amount=order.discount_amount,
                final_amount=order.final_amount,
                status=OrderStatus(order.status),
                created_at=order.created_at,
            )
            for order, name, phone in rows
        )
        return Paged(items=items, total_count=total, current_page=page.page, page_size=page.size)


# ═══════════════════════════════════════════════════════════════════════════════
# Query building
# ═══════════════════════════════════════════════════════════════════════════════


def _filtered(tenant: TenantId, filters: OrderFilters) -> Select[Any]:
    stmt = (
        select(OrderTable, CustomerTable.name, CustomerTable.phone_number)
        .outerjoin(
            CustomerTable,
            and_(
                CustomerTable.tenant_id == OrderTable.tenant_id,
                CustomerTable.id == OrderTable.customer_id,
            ),
        )
        .where(OrderTable.tenant_id == tenant.value)
    )

    if filters.search is not None and filters.search.strip():
        term = filters.search.strip().lower()
        stmt = stmt.where(or_(
            func.lower(CustomerTable.name, type_=String).contains(term, autoescape=True),
            func.lower(CustomerTable.phone_number, type_=String).contains(term, autoescape=True),
            func.lower(OrderTable.applied_code, type_=String).contains(term, autoescape=True),
        ))
    if filters.status is not None:
        stmt = stmt.where(OrderTable.status == filters.status.value)
    if filters.start_date is not None:
        stmt = stmt.where(OrderTable.created_at >= filters.start_date)
    if filters.end_date is not None:
        end_of_day = datetime.combine(filters.end_date.date(), time.min) + timedelta(days=1)
        stmt = stmt.where(OrderTable.created_at < end_of_day)
    if filters.min_amount is not None:
        stmt = stmt.where(OrderTable.final_amount >= filters.min_amount)
    if filters.max_amount is not None:
        stmt = stmt.where(OrderTable.final_amount <= filters.max_amount)
    return stmt


_SORT_COLUMNS: dict[SortField, Any] = {
    SortField.DATE: OrderTable.created_at,
    SortField.AMOUNT: OrderTable.final_amount,
    SortField.CUSTOMER: CustomerTable.name,
    SortField.STATUS: OrderTable.status,
}


def _sorted(stmt: Select[Any], filters: OrderFilters) -> Select[Any]:
    column = _SORT_COLUMNS[filters.sort_by]
    if filters.descending:
        return stmt.order_by(column.desc(), OrderTable.id.desc())
    return stmt.order_by(column.asc(), OrderTable.id.asc())


__all__ = ("OrderStore", "GUEST")
