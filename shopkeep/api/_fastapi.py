"""
FastAPI compiler for the wire declarations.

Each exposure becomes one route. The generated handler resolves the tenant
and the service through dependencies, decodes the request with
``to_domain``, runs the endpoint's handler and encodes ``Ok`` values with
``from_domain``. ``Error`` values become ``{"error", "message"}`` bodies
with the status from ``status_for``.
"""

from __future__ import annotations

import inspect
import logging
import re
from typing import Annotated, Any, get_type_hints

import fastapi
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from kungfu import Error, Ok, Result

from shopkeep._types import TenantId
from shopkeep.api._wire import Application, Endpoint, HTTPRouteTrigger, RequestResponseCodec
from shopkeep.errors import (
    CheckoutTimeout,
    ConcurrencyConflict,
    CustomerNotFound,
    DiscountExpired,
    DiscountInactive,
    DiscountLimitReached,
    DiscountNotFound,
    DiscountNotYetStarted,
    InsufficientStock,
    InvalidCart,
    OrderNotFound,
    PersistenceFailure,
    ProductNotFound,
    ShopError,
    Unauthenticated,
)
from shopkeep.service import ShopService
from shopkeep.tenancy import TenantContext

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Errors → HTTP
# ═══════════════════════════════════════════════════════════════════════════════

_STATUS: tuple[tuple[type[ShopError], int], ...] = (
    (Unauthenticated, 401),
    (InvalidCart, 400),
    (ProductNotFound, 404),
    (CustomerNotFound, 404),
    (OrderNotFound, 404),
    (DiscountNotFound, 404),
    (DiscountInactive, 409),
    (DiscountNotYetStarted, 409),
    (DiscountExpired, 409),
    (DiscountLimitReached, 409),
    (InsufficientStock, 409),
    (ConcurrencyConflict, 409),
    (CheckoutTimeout, 504),
    (PersistenceFailure, 503),
)


def status_for(error: ShopError) -> int:
    for kind, status in _STATUS:
        if isinstance(error, kind):
            return status
    return 500


class ShopHTTPError(Exception):
    """Carries a domain error out of a route to the exception handler."""

    def __init__(self, error: ShopError) -> None:
        super().__init__(error.message)
        self.error = error


def error_response(error: ShopError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(error),
        content={"error": error.code, "message": error.message},
    )


async def _on_shop_error(request: fastapi.Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, ShopHTTPError):
        raise exc
    if isinstance(exc.error, PersistenceFailure):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.error.message)
    return error_response(exc.error)


async def _on_invalid_request(request: fastapi.Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        raise exc
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"error": "INVALID_REQUEST", "message": problems or "Invalid request"},
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Dependencies
# ═══════════════════════════════════════════════════════════════════════════════


def current_tenant(request: fastapi.Request) -> TenantId:
    context: TenantContext = request.app.state.tenancy
    match context.resolve(request.headers):
        case Ok(tenant):
            return tenant
        case Error(e):
            raise ShopHTTPError(e)
    raise AssertionError("unreachable")


def current_service(request: fastapi.Request) -> ShopService:
    service: ShopService | None = getattr(request.app.state, "service", None)
    if service is None:
        raise RuntimeError("ShopService is not ready; was the app started with its lifespan?")
    return service


# ═══════════════════════════════════════════════════════════════════════════════
# Compiler
# ═══════════════════════════════════════════════════════════════════════════════


def _has_body(req_cls: type[Any]) -> bool:
    return bool(getattr(req_cls, "model_fields", None))


def _path_types(req_cls: type[Any]) -> dict[str, Any]:
    hints = get_type_hints(req_cls.to_domain)
    hints.pop("return", None)
    return hints


def make_handler(endp: Endpoint, trigger: HTTPRouteTrigger, codec: RequestResponseCodec) -> Any:
    req_cls = codec.request
    resp_cls = codec.response
    path_names = trigger.path_params
    path_types = _path_types(req_cls)

    async def _route_handler(**kwargs: Any) -> Any:
        tenant: TenantId = kwargs.pop("tenant")
        service: ShopService = kwargs.pop("service")
        req = kwargs.pop("req") if "req" in kwargs else req_cls()
        result: Result[Any, ShopError] = await endp.handler(service, tenant, req.to_domain(**kwargs))
        match result:
            case Ok(value):
                return resp_cls.from_domain(value)
            case Error(e):
                raise ShopHTTPError(e)

    params = [
        inspect.Parameter(
            "tenant",
            inspect.Parameter.KEYWORD_ONLY,
            annotation=Annotated[TenantId, fastapi.Depends(current_tenant)],
        ),
        inspect.Parameter(
            "service",
            inspect.Parameter.KEYWORD_ONLY,
            annotation=Annotated[ShopService, fastapi.Depends(current_service)],
        ),
    ]
    params.extend(
        inspect.Parameter(
            name,
            inspect.Parameter.KEYWORD_ONLY,
            annotation=Annotated[path_types.get(name, str), fastapi.Path()],
        )
        for name in path_names
    )
    if _has_body(req_cls):
        # GET carries the request model in the query string, the rest in the body.
        annotation = (
            Annotated[req_cls, fastapi.Query()] if trigger.method == "GET" else req_cls
        )
        params.append(inspect.Parameter("req", inspect.Parameter.KEYWORD_ONLY, annotation=annotation))

    setattr(_route_handler, "__signature__", inspect.Signature(params, return_annotation=resp_cls))
    _route_handler.__name__ = re.sub(r"\W+", "_", f"{trigger.method.lower()}_{trigger.path}").strip("_")
    return _route_handler


def add_endpoint_to_app(app: fastapi.FastAPI, endp: Endpoint) -> None:
    for trigger, codec in endp.exposures:
        app.add_api_route(
            trigger.path,
            make_handler(endp, trigger, codec),
            methods=[trigger.method],
            status_code=trigger.status_code,
            response_model=codec.response,
            responses={
                400: {"description": "Invalid request"},
                401: {"description": "No tenant could be resolved"},
            },
        )


def from_application(app: Application, **kwargs: Any) -> fastapi.FastAPI:
    f_app = fastapi.FastAPI(**kwargs)
    f_app.add_exception_handler(ShopHTTPError, _on_shop_error)
    f_app.add_exception_handler(RequestValidationError, _on_invalid_request)

    for endp in app.endpoints:
        add_endpoint_to_app(f_app, endp)

    return f_app


__all__ = (
    "status_for",
    "ShopHTTPError",
    "error_response",
    "current_tenant",
    "current_service",
    "make_handler",
    "add_endpoint_to_app",
    "from_application",
)
