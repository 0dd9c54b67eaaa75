"""Tests for price arithmetic."""

from decimal import Decimal

import pytest

from shopkeep._types import DiscountId, ProductId, TenantId
from shopkeep.domain import Product, ValidatedDiscount
from shopkeep.pricing import compute, money, price_line

T = TenantId("t")


def _product(pid: int, price: str) -> Product:
    return Product(ProductId(pid), T, f"S{pid}", f"P{pid}", money(price), 10)


def test_money_rounds_half_up_to_cents():
    assert money("1.005") == Decimal("1.01")
    assert money(3) == Decimal("3.00")


def test_money_refuses_float():
    with pytest.raises(TypeError):
        money(0.1)  # type: ignore[arg-type]


def test_subtotal_discount_and_final():
    """100,000 x 3 with SALE10 worth 50,000."""
    lines = [price_line(_product(1, "100000"), 3)]
    discount = ValidatedDiscount(DiscountId(1), "SALE10", money("50000"))

    b = compute(lines, discount)

    assert b.subtotal == Decimal("300000.00")
    assert b.discount_amount == Decimal("50000.00")
    assert b.final_amount == Decimal("250000.00")
    assert b.lines[0].line_total == Decimal("300000.00")


def test_discount_is_clamped_to_subtotal():
    lines = [price_line(_product(1, "4.00"), 2)]
    b = compute(lines, ValidatedDiscount(DiscountId(1), "BIG", money("20")))

    assert b.discount_amount == Decimal("8.00")
    assert b.final_amount == Decimal("0.00")


def test_no_discount():
    lines = [price_line(_product(1, "2.50"), 2), price_line(_product(2, "0.99"), 3)]
    b = compute(lines)

    assert b.subtotal == Decimal("7.97")
    assert b.discount_amount == Decimal("0.00")
    assert b.final_amount == b.subtotal
    assert b.discount is None


def test_compute_is_deterministic():
    lines = [price_line(_product(1, "19.99"), 7)]
    assert compute(lines) == compute(lines)
    assert compute(lines).final_amount == Decimal("139.93")
