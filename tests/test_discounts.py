"""Tests for discount validation and the usage counter."""

from datetime import timedelta
from decimal import Decimal

import pytest

from shopkeep import discounts as D
from shopkeep._types import DiscountId, TenantId
from shopkeep.domain import DiscountCode, ValidatedDiscount
from shopkeep.errors import (
    DiscountExpired,
    DiscountInactive,
    DiscountLimitReached,
    DiscountNotFound,
    DiscountNotYetStarted,
)
from shopkeep.pricing import money
from shopkeep.store import Claim

from support import NOW, add_discount, err, ok, used_count

T = TenantId("t")


def _code(**overrides) -> DiscountCode:
    fields = dict(
        id=DiscountId(1), tenant=T, code="SALE10", amount=money(10),
        start_date=NOW - timedelta(days=1), end_date=NOW + timedelta(days=1),
    )
    fields.update(overrides)
    return DiscountCode(**fields)


@pytest.mark.parametrize(
    ("discount", "tag"),
    [
        (None, D.NotFound),
        (_code(is_active=False), D.Inactive),
        (_code(start_date=NOW + timedelta(hours=1)), D.NotYetStarted),
        (_code(end_date=NOW - timedelta(seconds=1)), D.Expired),
        (_code(usage_limit=5, used_count=5), D.LimitReached),
        (_code(usage_limit=5, used_count=4), D.Valid),
        (_code(), D.Valid),
    ],
)
def test_classify(discount, tag):
    assert isinstance(D.classify("SALE10", discount, NOW), tag)


def test_window_bounds_are_inclusive():
    assert isinstance(D.classify("X", _code(start_date=NOW), NOW), D.Valid)
    assert isinstance(D.classify("X", _code(end_date=NOW), NOW), D.Valid)


def test_inactive_wins_over_expired():
    check = D.classify("X", _code(is_active=False, end_date=NOW - timedelta(days=9)), NOW)
    assert isinstance(check, D.Inactive)


@pytest.mark.parametrize(
    ("check", "error"),
    [
        (D.NotFound("X"), DiscountNotFound),
        (D.Inactive(_code()), DiscountInactive),
        (D.NotYetStarted(_code()), DiscountNotYetStarted),
        (D.Expired(_code()), DiscountExpired),
        (D.LimitReached(_code()), DiscountLimitReached),
    ],
)
def test_as_result_maps_tags_to_errors(check, error):
    assert isinstance(err(D.as_result(check)), error)


def test_messages():
    assert D.message(D.Valid(_code())) == "Coupon 'SALE10' applied successfully"
    assert D.message(D.Expired(_code())) == "Coupon has expired"
    assert D.message(D.NotFound("NOPE")) == "Coupon code not found"
    assert D.message(D.LimitReached(_code())) == "Coupon usage limit reached"


async def test_validate_is_tenant_scoped_and_trims(service, acme, globex):
    """Both tenants own a SALE10; each sees its own amount."""
    a = ok(await service.validator.validate(acme, "  SALE10 ", NOW))
    g = ok(await service.validator.validate(globex, "SALE10", NOW))

    assert a.amount == Decimal("10.00")
    assert g.amount == Decimal("2.00")


async def test_validate_is_case_sensitive(service, acme):
    assert isinstance(err(await service.validator.validate(acme, "sale10", NOW)), DiscountNotFound)


async def test_validate_never_touches_used_count(service, acme):
    for _ in range(3):
        ok(await service.validator.validate(acme, "SALE10", NOW))
    assert await used_count(service, acme, 1) == 0


async def test_available_excludes_invalid_and_foreign_codes(service, acme):
    await add_discount(service, acme, 10, "DONE", "50", usage_limit=1, used_count=1)
    await add_discount(service, acme, 11, "OFF", "40", active=False)
    await add_discount(service, acme, 12, "LATER", "30", start=NOW + timedelta(days=1))

    codes = [d.code for d in ok(await service.available_coupons(acme))]

    assert codes == ["SALE10", "WELCOME5"]


async def test_claim_stops_at_usage_limit(service, globex):
    """Globex SALE10 has usageLimit=1."""
    discount = ValidatedDiscount(DiscountId(1), "SALE10", money(2))

    claim = ok(await service.discounts.claim(globex, discount, NOW))
    second = err(await service.discounts.claim(globex, discount, NOW))

    assert isinstance(second, DiscountLimitReached)
    assert await used_count(service, globex, 1) == 1

    await service.discounts.unclaim(claim)
    assert await used_count(service, globex, 1) == 0


async def test_unclaim_without_claim_raises(service, acme):
    with pytest.raises(LookupError):
        await service.discounts.unclaim(Claim(acme, DiscountId(2), "WELCOME5"))
