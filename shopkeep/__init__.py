"""
shopkeep — multi-tenant shop checkout.

    from shopkeep import saga as S       # Compensated multi-step writes
    from shopkeep import quote as Q      # Cart pricing graph
    from shopkeep.service import ShopService
    from shopkeep.api import create_app
"""

from shopkeep import saga
from shopkeep import quote
from shopkeep._types import (
    TenantId,
    ProductId,
    DiscountId,
    CustomerId,
    OrderId,
)
from shopkeep.config import CouponPolicy, Settings
from shopkeep.errors import ShopError

__version__ = "0.1.0"

__all__ = (
    "saga",
    "quote",
    "TenantId",
    "ProductId",
    "DiscountId",
    "CustomerId",
    "OrderId",
    "CouponPolicy",
    "Settings",
    "ShopError",
)
