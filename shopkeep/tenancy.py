"""
Tenant resolution.

The only place a tenant is inferred. Everything downstream receives the
resolved TenantId as an argument.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from kungfu import Error, Ok, Result

from shopkeep._types import TenantId
from shopkeep.config import Settings
from shopkeep.errors import Unauthenticated

logger = logging.getLogger(__name__)


class TokenVerifier(Protocol):
    """Turns a bearer token into a tenant. Token issuance lives elsewhere."""

    def verify(self, token: str) -> TenantId | None: ...


@dataclass(frozen=True, slots=True)
class StaticTokenVerifier:
    """Fixed token → tenant table, typically from configuration."""

    tokens: Mapping[str, str] = field(default_factory=dict[str, str])

    def verify(self, token: str) -> TenantId | None:
        tenant = self.tokens.get(token)
        return TenantId(tenant) if tenant else None


def _header(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value.strip() or None
    return None


@dataclass(frozen=True, slots=True)
class TenantContext:
    verifier: TokenVerifier
    tenant_header: str = "X-Tenant-Id"
    trust_tenant_header: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> TenantContext:
        return cls(
            verifier=StaticTokenVerifier(settings.api_tokens),
            tenant_header=settings.tenant_header,
            trust_tenant_header=settings.trust_tenant_header,
        )

    def resolve(self, headers: Mapping[str, str]) -> Result[TenantId, Unauthenticated]:
        """
        Bearer token first, then the tenant header when it is trusted.

        A bearer token that does not verify is rejected outright; it never
        falls through to the header.
        """
        authorization = _header(headers, "Authorization")
        if authorization is not None:
            scheme, _, token = authorization.partition(" ")
            if scheme.lower() != "bearer" or not token.strip():
                return Error(Unauthenticated(message="Malformed Authorization header"))
            tenant = self.verifier.verify(token.strip())
            if tenant is None:
                logger.info("rejected unknown bearer token")
                return Error(Unauthenticated(message="Invalid bearer token"))
            return Ok(tenant)

        if self.trust_tenant_header:
            raw = _header(headers, self.tenant_header)
            if raw is not None:
                return Ok(TenantId(raw))

        return Error(Unauthenticated())


__all__ = ("TokenVerifier", "StaticTokenVerifier", "TenantContext")
