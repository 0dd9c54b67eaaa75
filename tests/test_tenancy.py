"""Tests for tenant resolution."""

import pytest

from shopkeep._types import TenantId
from shopkeep.config import Settings
from shopkeep.errors import Unauthenticated
from shopkeep.tenancy import StaticTokenVerifier, TenantContext

from support import err, ok


@pytest.fixture
def context() -> TenantContext:
    return TenantContext(StaticTokenVerifier({"tok-a": "acme"}))


def test_bearer_token_resolves_tenant(context):
    assert ok(context.resolve({"Authorization": "Bearer tok-a"})) == TenantId("acme")


def test_bearer_wins_over_header(context):
    headers = {"authorization": "Bearer tok-a", "X-Tenant-Id": "globex"}
    assert ok(context.resolve(headers)) == TenantId("acme")


def test_unknown_token_does_not_fall_back_to_header(context):
    headers = {"Authorization": "Bearer nope", "X-Tenant-Id": "globex"}
    assert isinstance(err(context.resolve(headers)), Unauthenticated)


def test_malformed_authorization_is_rejected(context):
    assert isinstance(err(context.resolve({"Authorization": "Basic abc"})), Unauthenticated)
    assert isinstance(err(context.resolve({"Authorization": "Bearer   "})), Unauthenticated)


def test_header_lookup_is_case_insensitive(context):
    assert ok(context.resolve({"x-tenant-id": " globex "})) == TenantId("globex")


def test_untrusted_header_is_ignored():
    context = TenantContext(StaticTokenVerifier({}), trust_tenant_header=False)
    assert isinstance(err(context.resolve({"X-Tenant-Id": "acme"})), Unauthenticated)


def test_nothing_to_go_on(context):
    assert isinstance(err(context.resolve({})), Unauthenticated)
    assert isinstance(err(context.resolve({"X-Tenant-Id": "  "})), Unauthenticated)


def test_from_settings_uses_configured_header_and_tokens():
    settings = (
        Settings()
        .with_tenant_header("X-Shop", trusted=True)
        .with_api_tokens({"t1": "acme"})
    )
    context = TenantContext.from_settings(settings)

    assert ok(context.resolve({"X-Shop": "globex"})) == TenantId("globex")
    assert ok(context.resolve({"Authorization": "Bearer t1"})) == TenantId("acme")
    assert isinstance(err(context.resolve({"X-Tenant-Id": "globex"})), Unauthenticated)


def test_empty_tenant_id_is_refused():
    with pytest.raises(ValueError):
        TenantId("")
