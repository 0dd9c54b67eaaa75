"""
Wire — expose service operations via triggers and codecs.

    endp = endpoint(preview).expose(
        HTTPRouteTrigger("POST", "/orders/preview"),
        RequestResponseCodec(PreviewIn, PreviewOut),
    )
    app = Application().mount(endp)
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol, Self, TypeVar

from kungfu import Result

if TYPE_CHECKING:
    from shopkeep._types import TenantId
    from shopkeep.errors import ShopError
    from shopkeep.service import ShopService


DomainT_co = TypeVar("DomainT_co", covariant=True)
DomainT_contra = TypeVar("DomainT_contra", contravariant=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Triggers
# ═══════════════════════════════════════════════════════════════════════════════

type Method = Literal["GET", "POST", "PUT", "DELETE", "PATCH"]

_PATH_PARAM = re.compile(r"{(\w+)}")


@dataclass(frozen=True, slots=True)
class HTTPRouteTrigger:
    method: Method
    path: str
    status_code: int = 200

    @property
    def path_params(self) -> tuple[str, ...]:
        return tuple(_PATH_PARAM.findall(self.path))


# ═══════════════════════════════════════════════════════════════════════════════
# Codecs
# ═══════════════════════════════════════════════════════════════════════════════


class ToDomain(Protocol[DomainT_co]):
    """Path parameters, if the route has any, arrive as keyword arguments."""

    def to_domain(self, **path: Any) -> DomainT_co: ...


class FromDomain(Protocol[DomainT_contra]):
    @classmethod
    def from_domain(cls, dom: DomainT_contra) -> FromDomain[DomainT_contra]: ...


@dataclass(frozen=True, slots=True)
class RequestResponseCodec:
    request: type[ToDomain[Any]]
    response: type[FromDomain[Any]]


type Exposure = tuple[HTTPRouteTrigger, RequestResponseCodec]


# ═══════════════════════════════════════════════════════════════════════════════
# Endpoint / Application
# ═══════════════════════════════════════════════════════════════════════════════

type Handler = Callable[[ShopService, TenantId, Any], Awaitable[Result[Any, ShopError]]]


@dataclass(slots=True)
class Endpoint:
    handler: Handler
    exposures: list[Exposure] = field(default_factory=list[Exposure])

    @classmethod
    def from_handler(cls, handler: Handler) -> Endpoint:
        return cls(handler=handler)

    def expose(self, trigger: HTTPRouteTrigger, codec: RequestResponseCodec) -> Endpoint:
        return Endpoint(
            handler=self.handler, exposures=[*self.exposures, (trigger, codec)]
        )


def endpoint(handler: Handler) -> Endpoint:
    return Endpoint.from_handler(handler)


class Application:
    def __init__(self) -> None:
        self.endpoints: list[Endpoint] = []

    def mount(self, *endps: Endpoint) -> Self:
        self.endpoints.extend(endps)
        return self


def application() -> Application:
    return Application()


__all__ = (
    "Method",
    "HTTPRouteTrigger",
    "ToDomain",
    "FromDomain",
    "RequestResponseCodec",
    "Exposure",
    "Handler",
    "Endpoint",
    "endpoint",
    "Application",
    "application",
)
