"""
Interactive CLI over ShopService.

Every command acts for the current tenant (``tenant <id>`` switches):

┌─────────────────────────────────────────────────────────────────────────┐
│  COMMAND      WHAT RUNS                              WRITES             │
├─────────────────────────────────────────────────────────────────────────┤
│  products     Catalog search (fuzzy)                  nothing            │
│  preview      Quote graph                             nothing            │
│  checkout     Quote graph, reservations, commit       stock, usage, order│
│  orders       Order listing                           nothing            │
└─────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from kungfu import Error, Ok

from shopkeep._types import CustomerId, OrderId, ProductId, TenantId, utcnow
from shopkeep.config import Settings
from shopkeep.db import create_database
from shopkeep.domain import Cart, CartItem, OrderFilters
from shopkeep.logs import configure_logging
from shopkeep.seed import ACME, seed_all
from shopkeep.service import ShopService

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Help
# ═══════════════════════════════════════════════════════════════════════════════

HELP_TEXT = """
┌─────────────────────────────────────────────────────────────────────────────┐
│                              COMMANDS                                        │
├─────────────────────────────────────────────────────────────────────────────┤
│  products [keyword]                 List products, fuzzy-filtered            │
│  coupons                            Coupons usable right now                 │
│  preview <items> [code]             Price a cart (no writes)                 │
│  checkout <items> [code] [@cust]    Place an order                           │
│  orders [search]                    Latest orders                            │
│  order <id>                         One order with its lines                 │
├─────────────────────────────────────────────────────────────────────────────┤
│  tenant <id>                        Act for another tenant                   │
│  help                               Show this help                           │
│  quit                               Exit                                     │
└─────────────────────────────────────────────────────────────────────────────┘

Items format: PRODUCT_ID:QTY,PRODUCT_ID:QTY  (e.g., 1:2,3:1)

Examples:
  preview 1:2,3:1 SALE10
  checkout 1:1 SALE10 @c-100
"""


def print_help() -> None:
    print(HELP_TEXT)


# ═══════════════════════════════════════════════════════════════════════════════
# Parsing
# ═══════════════════════════════════════════════════════════════════════════════


def parse_items(items_str: str) -> tuple[CartItem, ...]:
    """Parse '1:2,3:1' into cart items."""
    items: list[CartItem] = []
    for part in items_str.split(","):
        if ":" not in part:
            raise ValueError(f"Invalid format: {part} (expected PRODUCT_ID:QTY)")
        product_id, qty = part.split(":", 1)
        items.append(CartItem(ProductId(int(product_id)), int(qty)))
    return tuple(items)


def make_cart(args: list[str]) -> Cart:
    """``<items> [code] [@customer]`` in any order after the items."""
    if not args:
        raise ValueError("missing items")
    code: str | None = None
    customer: CustomerId | None = None
    for extra in args[1:]:
        if extra.startswith("@"):
            customer = CustomerId(extra[1:])
        else:
            code = extra
    return Cart(parse_items(args[0]), coupon_code=code, customer_id=customer)


# ═══════════════════════════════════════════════════════════════════════════════
# Commands
# ═══════════════════════════════════════════════════════════════════════════════


async def cmd_products(service: ShopService, tenant: TenantId, keyword: str | None) -> None:
    match await service.search_products(tenant, keyword):
        case Ok(products):
            print()
            for p in products:
                print(f"  [{p.id.value:4}] {p.sku:10} {p.name:24} {p.unit_price:>9}  stock {p.stock}")
            if not products:
                print("  (no products)")
        case Error(e):
            print(f"\n  ✗ Failed: [{e.code}] {e.message}")


async def cmd_coupons(service: ShopService, tenant: TenantId) -> None:
    match await service.available_coupons(tenant):
        case Ok(codes):
            print()
            for d in codes:
                left = "unlimited" if d.remaining is None else f"{d.remaining} left"
                print(f"  {d.code:12} -{d.amount:>7}  until {d.end_date:%Y-%m-%d}  ({left})")
            if not codes:
                print("  (no coupons available)")
        case Error(e):
            print(f"\n  ✗ Failed: [{e.code}] {e.message}")


async def cmd_preview(service: ShopService, tenant: TenantId, cart: Cart) -> None:
    match await service.preview(tenant, cart):
        case Ok(quote):
            b = quote.breakdown
            print(f"""
┌────────────────────────────────────────────────┐
│  ORDER PREVIEW (nothing reserved)               │
├────────────────────────────────────────────────┤""")
            for line in b.lines:
                print(f"│  {line.quantity:>3}x {line.product_name:24} {line.line_total:>10} │")
            print(f"""├────────────────────────────────────────────────┤
│  Subtotal:  {b.subtotal:>12}                       │
│  Discount: -{b.discount_amount:>12}                       │
│  TOTAL:     {b.final_amount:>12}                       │
└────────────────────────────────────────────────┘""")
            if quote.coupon_message is not None:
                print(f"  {'✓' if quote.coupon_applied else '⚠'} {quote.coupon_message}")
        case Error(e):
            print(f"\n  ✗ Failed: [{e.code}] {e.message}")


async def cmd_checkout(service: ShopService, tenant: TenantId, cart: Cart) -> None:
    match await service.checkout(tenant, cart):
        case Ok(order):
            print(f"""
╔════════════════════════════════════════════════╗
║  ORDER {order.id.value:<39} ║
╠════════════════════════════════════════════════╣""")
            for line in order.lines:
                print(f"║  {line.quantity:>3}x {line.product_name:24} {line.line_total:>10} ║")
            print(f"""╠════════════════════════════════════════════════╣
║  Subtotal:  {order.subtotal:>12}                       ║
║  Discount: -{order.discount_amount:>12}                       ║
║  TOTAL:     {order.final_amount:>12}                       ║
╚════════════════════════════════════════════════╝

  ✓ Order created successfully. Stock reserved and committed.""")
        case Error(e):
            print(f"\n  ✗ Checkout failed: [{e.code}] {e.message}")


async def cmd_orders(service: ShopService, tenant: TenantId, search: str | None) -> None:
    match await service.list_orders(tenant, OrderFilters(search=search)):
        case Ok(page):
            print(f"\n  {page.total_count} order(s), page {page.current_page}/{max(page.total_pages, 1)}")
            for s in page.items:
                print(
                    f"  #{s.id.value:<5} {s.created_at:%Y-%m-%d %H:%M}  {s.customer_name:16}"
                    f" {s.item_count:>3} item(s)  {s.final_amount:>10}  {s.status.value}"
                )
        case Error(e):
            print(f"\n  ✗ Failed: [{e.code}] {e.message}")


async def cmd_order(service: ShopService, tenant: TenantId, order_id: int) -> None:
    match await service.get_order(tenant, OrderId(order_id)):
        case Ok(order):
            who = order.customer_id.value if order.customer_id is not None else "guest"
            print(f"\n  Order #{order.id.value} for {who}, {order.status.value}")
            for line in order.lines:
                print(
                    f"    {line.quantity:>3}x {line.product_name:24}"
                    f" @ {line.unit_price_at_purchase:>8} = {line.line_total:>10}"
                )
            code = f" ({order.applied_code})" if order.applied_code else ""
            print(f"    discount{code}: -{order.discount_amount}  total: {order.final_amount}")
        case Error(e):
            print(f"\n  ✗ Failed: [{e.code}] {e.message}")


# ═══════════════════════════════════════════════════════════════════════════════
# Main Loop
# ═══════════════════════════════════════════════════════════════════════════════

BANNER = """
╔════════════════════════════════════════════════════════════════════════════╗
║                               SHOPKEEP                                      ║
╠════════════════════════════════════════════════════════════════════════════╣
║  preview  → quote only, nothing written                                     ║
║  checkout → reserve stock + coupon, commit order, or roll everything back   ║
╚════════════════════════════════════════════════════════════════════════════╝
"""


async def run_cli(service: ShopService, tenant: TenantId) -> None:
    print(BANNER)
    print_help()

    while True:
        try:
            line = (await asyncio.to_thread(input, f"\n[{tenant.value}]> ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            break

        if not line:
            continue

        cmd, *args = line.split()

        try:
            match cmd.lower():
                case "quit" | "exit" | "q":
                    print("Bye!")
                    break
                case "help" | "h" | "?":
                    print_help()
                case "tenant":
                    if len(args) != 1:
                        print("  Usage: tenant <id>")
                        continue
                    tenant = TenantId(args[0])
                case "products":
                    await cmd_products(service, tenant, " ".join(args) or None)
                case "coupons":
                    await cmd_coupons(service, tenant)
                case "preview":
                    await cmd_preview(service, tenant, make_cart(args))
                case "checkout":
                    await cmd_checkout(service, tenant, make_cart(args))
                case "orders":
                    await cmd_orders(service, tenant, " ".join(args) or None)
                case "order":
                    if len(args) != 1:
                        print("  Usage: order <id>")
                        continue
                    await cmd_order(service, tenant, int(args[0]))
                case _:
                    print(f"  ✗ Unknown command: {cmd}")
                    print("  Type 'help' for available commands.")
        except ValueError as e:
            print(f"  ✗ Error: {e}")


async def _main(args: argparse.Namespace) -> None:
    settings = Settings.from_env()
    if args.database_url:
        settings = settings.with_database_url(args.database_url)
    configure_logging(args.log_level or settings.log_level)

    session_factory, engine = await create_database(settings.database_url)
    service = ShopService(session_factory, settings)
    try:
        if args.seed:
            await seed_all(service.catalog, utcnow())
        await run_cli(service, TenantId(args.tenant))
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="shopkeep", description="Interactive shop shell.")
    parser.add_argument("--database-url", help="overrides SHOPKEEP_DATABASE_URL")
    parser.add_argument("--tenant", default=ACME.value, help="tenant to act for (default: %(default)s)")
    parser.add_argument("--seed", action="store_true", help="insert demo data first")
    parser.add_argument("--log-level", help="overrides SHOPKEEP_LOG_LEVEL")
    asyncio.run(_main(parser.parse_args(argv)))


if __name__ == "__main__":
    main()
