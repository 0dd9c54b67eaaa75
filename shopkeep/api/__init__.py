"""
HTTP API.

    from shopkeep.api import create_app

    app = create_app(Settings.from_env())

Routes are declared as wire endpoints (handler + trigger + codec) and
compiled to FastAPI by ``from_application``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import fastapi
from kungfu import Result

from shopkeep._types import OrderId, TenantId
from shopkeep.api._codecs import (
    CheckoutIn,
    CheckoutOut,
    CouponsIn,
    CouponsOut,
    OrderListIn,
    OrderOut,
    OrderPageOut,
    OrderRef,
    PreviewIn,
    PreviewOut,
)
from shopkeep.api._fastapi import ShopHTTPError, from_application, status_for
from shopkeep.api._wire import (
    Application,
    HTTPRouteTrigger,
    RequestResponseCodec,
    application,
    endpoint,
)
from shopkeep.config import Settings
from shopkeep.db import create_database
from shopkeep.domain import Cart, OrderFilters, PageRequest
from shopkeep.errors import ShopError
from shopkeep.logs import configure_logging
from shopkeep.service import ShopService
from shopkeep.tenancy import TenantContext

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Handlers
# ═══════════════════════════════════════════════════════════════════════════════


async def _preview(service: ShopService, tenant: TenantId, cart: Cart) -> Result[Any, ShopError]:
    return await service.preview(tenant, cart)


async def _checkout(service: ShopService, tenant: TenantId, cart: Cart) -> Result[Any, ShopError]:
    return await service.checkout(tenant, cart)


async def _get_order(service: ShopService, tenant: TenantId, order_id: OrderId) -> Result[Any, ShopError]:
    return await service.get_order(tenant, order_id)


async def _list_orders(
    service: ShopService, tenant: TenantId, query: tuple[OrderFilters, PageRequest]
) -> Result[Any, ShopError]:
    filters, page = query
    return await service.list_orders(tenant, filters, page)


async def _available_coupons(service: ShopService, tenant: TenantId, _: None) -> Result[Any, ShopError]:
    return await service.available_coupons(tenant)


# ═══════════════════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════════════════


def routes() -> Application:
    """Every route of the shop API. Literal paths are mounted before templated ones."""
    return application().mount(
        endpoint(_preview).expose(
            HTTPRouteTrigger("POST", "/orders/preview"),
            RequestResponseCodec(PreviewIn, PreviewOut),
        ),
        endpoint(_checkout).expose(
            HTTPRouteTrigger("POST", "/orders/checkout", status_code=201),
            RequestResponseCodec(CheckoutIn, CheckoutOut),
        ),
        endpoint(_available_coupons).expose(
            HTTPRouteTrigger("GET", "/orders/available-coupons"),
            RequestResponseCodec(CouponsIn, CouponsOut),
        ),
        endpoint(_list_orders).expose(
            HTTPRouteTrigger("GET", "/orders"),
            RequestResponseCodec(OrderListIn, OrderPageOut),
        ),
        endpoint(_get_order).expose(
            HTTPRouteTrigger("GET", "/orders/{orderId}"),
            RequestResponseCodec(OrderRef, OrderOut),
        ),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# App factory
# ═══════════════════════════════════════════════════════════════════════════════


def create_app(
    settings: Settings | None = None,
    *,
    service: ShopService | None = None,
) -> fastapi.FastAPI:
    """
    Build the FastAPI app.

    Without ``service`` the lifespan opens ``settings.database_url`` and
    disposes the engine on shutdown. With one, the app uses it as-is.
    """
    settings = settings if settings is not None else Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: fastapi.FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        if service is not None:
            yield
            return
        session_factory, engine = await create_database(settings.database_url)
        app.state.service = ShopService(session_factory, settings)
        logger.info("shopkeep API ready on %s", settings.database_url)
        try:
            yield
        finally:
            await engine.dispose()

    app = from_application(routes(), title="shopkeep", lifespan=lifespan)
    app.state.tenancy = TenantContext.from_settings(settings)
    if service is not None:
        app.state.service = service
    return app


__all__ = (
    "create_app",
    "routes",
    "status_for",
    "ShopHTTPError",
)
