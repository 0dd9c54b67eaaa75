"""
Persistence schema and engine setup.

    from shopkeep import db

    session_factory, engine = await db.create_database("sqlite+aiosqlite:///./shop.db")
"""

from shopkeep.db._tables import (
    Money,
    Base,
    ProductTable,
    CustomerTable,
    DiscountTable,
    OrderTable,
    OrderLineTable,
)
from shopkeep.db._engine import create_database

__all__ = (
    "Money",
    "Base",
    "ProductTable",
    "CustomerTable",
    "DiscountTable",
    "OrderTable",
    "OrderLineTable",
    "create_database",
)
