"""Tests for CLI argument parsing and commands."""

import pytest

from shopkeep._types import CustomerId, ProductId
from shopkeep.cli import cmd_checkout, cmd_coupons, cmd_products, make_cart, parse_items
from shopkeep.domain import CartItem

from support import cart, stock_of


def test_parse_items():
    assert parse_items("1:2,3:1") == (CartItem(ProductId(1), 2), CartItem(ProductId(3), 1))


@pytest.mark.parametrize("raw", ["1", "1:x", "a:1"])
def test_parse_items_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_items(raw)


def test_make_cart_reads_code_and_customer_in_any_order():
    c = make_cart(["1:1", "@c-100", "SALE10"])

    assert c.coupon_code == "SALE10"
    assert c.customer_id == CustomerId("c-100")


def test_make_cart_needs_items():
    with pytest.raises(ValueError):
        make_cart([])


async def test_products_command_filters_fuzzily(service, acme, capsys):
    await cmd_products(service, acme, "keybord")

    out = capsys.readouterr().out
    assert "Mechanical Keyboard" in out
    assert "Wireless Mouse" not in out


async def test_coupons_command(service, globex, capsys):
    await cmd_coupons(service, globex)
    assert "SALE10" in capsys.readouterr().out


async def test_checkout_command_reports_failure(service, acme, capsys):
    await cmd_checkout(service, acme, cart((3, 9)))

    assert "INSUFFICIENT_STOCK" in capsys.readouterr().out
    assert await stock_of(service, acme, 3) == 3
