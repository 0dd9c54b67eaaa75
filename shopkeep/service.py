"""
Shop Service — tenant-scoped operations shared by every transport.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import Result

from shopkeep import quote as Q
from shopkeep._types import Clock, OrderId, TenantId, utcnow
from shopkeep.checkout import CheckoutAttempt, CheckoutTransaction
from shopkeep.config import Settings
from shopkeep.discounts import DiscountValidator
from shopkeep.domain import (
    Cart,
    DiscountCode,
    Order,
    OrderFilters,
    OrderSummary,
    PageRequest,
    Paged,
    Product,
)
from shopkeep.errors import OrderNotFound, PersistenceFailure, ShopError
from shopkeep.store import Catalog, DiscountLedger, OrderStore, StockLedger


class ShopService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings = Settings(),
        clock: Clock = utcnow,
    ) -> None:
        self.settings = settings
        self.catalog = Catalog(session_factory)
        self.stock = StockLedger(session_factory)
        self.discounts = DiscountLedger(session_factory)
        self.orders = OrderStore(session_factory)
        self.validator = DiscountValidator(self.discounts)
        self._clock = clock
        self._checkout = CheckoutTransaction(
            catalog=self.catalog,
            validator=self.validator,
            stock=self.stock,
            usage=self.discounts,
            orders=self.orders,
            settings=settings,
            clock=clock,
        )

    async def preview(self, tenant: TenantId, cart: Cart) -> Result[Q.Quote, ShopError]:
        """Price the cart as checkout would, without writing anything."""
        deps = Q.QuoteDeps(catalog=self.catalog, validator=self.validator)
        return await Q.quote(Q.QuoteRequest(tenant, cart, self._clock()), deps)

    async def checkout(
        self,
        tenant: TenantId,
        cart: Cart,
        attempt: CheckoutAttempt | None = None,
    ) -> Result[Order, ShopError]:
        return await self._checkout.run(tenant, cart, attempt)

    async def get_order(
        self, tenant: TenantId, order_id: OrderId
    ) -> Result[Order, OrderNotFound | PersistenceFailure]:
        return await self.orders.get_by_id(tenant, order_id)

    async def list_orders(
        self,
        tenant: TenantId,
        filters: OrderFilters = OrderFilters(),
        page: PageRequest = PageRequest(),
    ) -> Result[Paged[OrderSummary], PersistenceFailure]:
        return await self.orders.list(tenant, filters, page)

    async def available_coupons(
        self, tenant: TenantId
    ) -> Result[list[DiscountCode], PersistenceFailure]:
        return await self.validator.available(tenant, self._clock())

    async def search_products(
        self, tenant: TenantId, keyword: str | None = None
    ) -> Result[list[Product], PersistenceFailure]:
        return await self.catalog.search_products(tenant, keyword)


__all__ = ("ShopService",)
