"""
Store — tenant-scoped persistence.

Every method takes the tenant explicitly; nothing reads a "current" tenant.
Counters (``stock``, ``used_count``) change only through the ledgers.
"""

from shopkeep.store._catalog import Catalog
from shopkeep.store._stock import Reservation, StockLedger
from shopkeep.store._discounts import Claim, DiscountLedger
from shopkeep.store._orders import GUEST, OrderStore

__all__ = (
    "Catalog",
    "Reservation",
    "StockLedger",
    "Claim",
    "DiscountLedger",
    "OrderStore",
    "GUEST",
)
