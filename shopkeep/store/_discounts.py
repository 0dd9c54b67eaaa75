"""
DiscountLedger — the only writer of ``discounts.used_count``.

Claim increments only while the code is still valid at ``now``, in one
conditional UPDATE; two checkouts racing for the last use cannot both win.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, cast

from kungfu import Error, Ok, Result
from sqlalchemy import or_, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopkeep import discounts
from shopkeep._types import DiscountId, TenantId
from shopkeep.db import DiscountTable
from shopkeep.domain import DiscountCode, ValidatedDiscount
from shopkeep.errors import (
    ConcurrencyConflict,
    DiscountError,
    PersistenceFailure,
    ShopErrors,
)
from shopkeep.store._mapping import discount_from_row

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Claim:
    """A committed usage increment awaiting order commit or unclaim."""

    tenant: TenantId
    discount_id: DiscountId
    code: str


class DiscountLedger:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ───────────────────────────────────────────────────────────────────────────
    # Reads
    # ───────────────────────────────────────────────────────────────────────────

    async def find(
        self, tenant: TenantId, code: str
    ) -> Result[DiscountCode | None, PersistenceFailure]:
        try:
            async with self._session_factory() as session:
                row = await session.scalar(
                    select(DiscountTable).where(
                        DiscountTable.tenant_id == tenant.value,
                        DiscountTable.code == code,
                    )
                )
                return Ok(discount_from_row(row) if row is not None else None)
        except SQLAlchemyError as e:
            return Error(ShopErrors.persistence("Failed to find discount", e))

    async def get(
        self, tenant: TenantId, discount_id: DiscountId
    ) -> Result[DiscountCode | None, PersistenceFailure]:
        try:
            async with self._session_factory() as session:
                row = await session.get(DiscountTable, (tenant.value, discount_id.value))
                return Ok(discount_from_row(row) if row is not None else None)
        except SQLAlchemyError as e:
            return Error(ShopErrors.persistence("Failed to load discount", e))

    async def list_valid(
        self, tenant: TenantId, now: datetime
    ) -> Result[list[DiscountCode], PersistenceFailure]:
        try:
            async with self._session_factory() as session:
                rows = await session.scalars(
                    select(DiscountTable)
                    .where(DiscountTable.tenant_id == tenant.value, *_valid_at(now))
                    .order_by(DiscountTable.amount.desc(), DiscountTable.id)
                )
                return Ok([discount_from_row(row) for row in rows])
        except SQLAlchemyError as e:
            return Error(ShopErrors.persistence("Failed to list discounts", e))

    # ───────────────────────────────────────────────────────────────────────────
    # Counter
    # ───────────────────────────────────────────────────────────────────────────

    async def claim(
        self, tenant: TenantId, discount: ValidatedDiscount, now: datetime
    ) -> Result[Claim, DiscountError | ConcurrencyConflict | PersistenceFailure]:
        try:
            async with self._session_factory() as session:
                result = cast(CursorResult[Any], await session.execute(
                    update(DiscountTable)
                    .where(
                        DiscountTable.tenant_id == tenant.value,
                        DiscountTable.id == discount.id.value,
                        *_valid_at(now),
                    )
                    .values(used_count=DiscountTable.used_count + 1)
                    .execution_options(synchronize_session=False)
                ))
                await session.commit()
        except SQLAlchemyError as e:
            return Error(ShopErrors.persistence("Failed to claim discount", e))

        if result.rowcount == 1:
            logger.debug("claimed one use of %s for %s", discount.code, tenant.value)
            return Ok(Claim(tenant, discount.id, discount.code))

        match await self.get(tenant, discount.id):
            case Ok(current):
                check = discounts.classify(discount.code, current, now)
                logger.info("claim of %s for %s lost: %s", discount.code, tenant.value, type(check).__name__)
                match discounts.as_result(check):
                    case Error(e):
                        return Error(e)
                    case Ok(_):
                        return Error(ConcurrencyConflict())
            case Error(e):
                return Error(e)

    async def unclaim(self, claim: Claim) -> None:
        """Undo a claim. Raises on failure so the saga can retry and report it."""
        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(
                update(DiscountTable)
                .where(
                    DiscountTable.tenant_id == claim.tenant.value,
                    DiscountTable.id == claim.discount_id.value,
                    DiscountTable.used_count > 0,
                )
                .values(used_count=DiscountTable.used_count - 1)
                .execution_options(synchronize_session=False)
            ))
            await session.commit()
        if result.rowcount != 1:
            raise LookupError(f"discount {claim.code} could not be unclaimed")
        logger.debug("unclaimed one use of %s for %s", claim.code, claim.tenant.value)


def _valid_at(now: datetime) -> tuple[Any, ...]:
    return (
        DiscountTable.is_active.is_(True),
        DiscountTable.start_date <= now,
        DiscountTable.end_date >= now,
        or_(
            DiscountTable.usage_limit.is_(None),
            DiscountTable.used_count < DiscountTable.usage_limit,
        ),
    )


__all__ = ("Claim", "DiscountLedger")
