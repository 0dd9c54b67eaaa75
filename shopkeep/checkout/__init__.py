"""
Checkout — turn a cart into an order, all-or-nothing.

    from shopkeep.checkout import CheckoutTransaction

    tx = CheckoutTransaction(catalog=..., validator=..., stock=..., usage=..., orders=...)
    result = await tx.run(tenant, cart)
"""

from shopkeep.checkout._transaction import (
    CheckoutAttempt,
    CheckoutState,
    CheckoutTransaction,
    Stock,
    Usage,
)

__all__ = (
    "CheckoutAttempt",
    "CheckoutState",
    "CheckoutTransaction",
    "Stock",
    "Usage",
)
