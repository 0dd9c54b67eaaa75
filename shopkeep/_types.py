"""
Core types for shopkeep.

Re-exports from kungfu + identity types shared by every layer.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

# Re-export from kungfu
from kungfu import Error, LazyCoroResult, Ok, Result

# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class TenantId:
    """
    The shop partition a request acts for.

    Every store method takes one explicitly. There is no ambient tenant.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("TenantId must be non-empty")


@dataclass(frozen=True, slots=True)
class ProductId:
    value: int


@dataclass(frozen=True, slots=True)
class DiscountId:
    value: int


@dataclass(frozen=True, slots=True)
class CustomerId:
    value: str


@dataclass(frozen=True, slots=True)
class OrderId:
    value: int


# ═══════════════════════════════════════════════════════════════════════════════
# Clock
# ═══════════════════════════════════════════════════════════════════════════════

type Clock = Callable[[], datetime]
"""Returns the current time as naive UTC."""


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Identity
    "TenantId",
    "ProductId",
    "DiscountId",
    "CustomerId",
    "OrderId",
    # Clock
    "Clock",
    "utcnow",
)
