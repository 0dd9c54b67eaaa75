"""
Quote — price a cart against one tenant's current catalog and codes.

Shared by preview (the whole answer) and checkout (its validating phase).
Read-only.

    from shopkeep import quote as Q

    result = await Q.quote(Q.QuoteRequest(tenant, cart, now), deps)
"""

from kungfu import Result

from shopkeep.errors import ShopError
from shopkeep.quote._types import Quote, QuoteDeps, QuoteRequest
from shopkeep.quote._nodes import CouponNode, PricedLinesNode, QuoteNode, merge_items
from shopkeep.quote._run import TypedScope, compose


async def quote(request: QuoteRequest, deps: QuoteDeps) -> Result[Quote, ShopError]:
    node = await compose(QuoteNode, request, deps)
    return node.result


__all__ = (
    "Quote",
    "QuoteDeps",
    "QuoteRequest",
    "CouponNode",
    "PricedLinesNode",
    "QuoteNode",
    "merge_items",
    "TypedScope",
    "compose",
    "quote",
)
