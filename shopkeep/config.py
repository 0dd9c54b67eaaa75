"""
Settings — runtime configuration.

Immutable; each ``with_*`` method returns a new Settings.

    settings = (
        Settings.from_env()
        .with_database_url("sqlite+aiosqlite:///./dev.db")
        .with_coupon_policy(CouponPolicy.STRICT)
    )
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import timedelta
from enum import Enum

from shopkeep.saga.policy import RetryPolicy, TimeoutPolicy


# ═══════════════════════════════════════════════════════════════════════════════
# Coupon Policy — checkout behavior on an invalid code
# ═══════════════════════════════════════════════════════════════════════════════


class CouponPolicy(Enum):
    """
    What checkout does when the supplied coupon does not validate.

    LENIENT (default): drop the coupon and charge full price. A claim lost
    to a concurrent checkout re-runs the attempt once without the coupon.
    STRICT: abort the attempt with the typed discount error.

    Preview is unaffected: it always reports the problem as a message.
    """

    STRICT = "strict"
    LENIENT = "lenient"


# ═══════════════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str = "sqlite+aiosqlite:///./shopkeep.db"
    tenant_header: str = "X-Tenant-Id"
    trust_tenant_header: bool = True
    api_tokens: Mapping[str, str] = field(default_factory=dict[str, str])
    coupon_policy: CouponPolicy = CouponPolicy.LENIENT
    reservation_timeout: TimeoutPolicy = TimeoutPolicy(timedelta(seconds=5))
    compensation_retry: RetryPolicy = RetryPolicy(3, timedelta(milliseconds=50))
    log_level: str = "INFO"

    def with_database_url(self, url: str) -> Settings:
        return replace(self, database_url=url)

    def with_tenant_header(self, header: str, *, trusted: bool = True) -> Settings:
        return replace(self, tenant_header=header, trust_tenant_header=trusted)

    def with_api_tokens(self, tokens: Mapping[str, str]) -> Settings:
        """Map bearer tokens to tenant ids."""
        return replace(self, api_tokens=dict(tokens))

    def with_coupon_policy(self, policy: CouponPolicy) -> Settings:
        return replace(self, coupon_policy=policy)

    def with_reservation_timeout(
        self,
        *,
        seconds: float | None = None,
        delta: timedelta | None = None,
    ) -> Settings:
        """
        Bound the reserving phase of a checkout.

        Exactly one of seconds/delta.
        """
        return replace(
            self,
            reservation_timeout=TimeoutPolicy.of(seconds=seconds, duration=delta),
        )

    def with_compensation_retry(
        self,
        times: int,
        delay: timedelta = timedelta(milliseconds=50),
    ) -> Settings:
        if times < 1:
            raise ValueError("times must be >= 1")
        return replace(self, compensation_retry=RetryPolicy(times, delay))

    def with_log_level(self, level: str) -> Settings:
        return replace(self, log_level=level.upper())

    # ───────────────────────────────────────────────────────────────────────────
    # Environment
    # ───────────────────────────────────────────────────────────────────────────

    @classmethod
    def from_env(
        cls,
        prefix: str = "SHOPKEEP_",
        environ: Mapping[str, str] | None = None,
    ) -> Settings:
        """
        Load settings from environment variables.

        Unset variables keep their defaults. Malformed values raise
        ValueError naming the variable.
        """
        env = os.environ if environ is None else environ
        settings = cls()

        def get(name: str) -> str | None:
            value = env.get(prefix + name)
            return value.strip() if value is not None and value.strip() else None

        if (url := get("DATABASE_URL")) is not None:
            settings = settings.with_database_url(url)

        header = get("TENANT_HEADER")
        trusted = get("TRUST_TENANT_HEADER")
        if header is not None or trusted is not None:
            settings = settings.with_tenant_header(
                header or settings.tenant_header,
                trusted=(
                    _parse_bool(prefix + "TRUST_TENANT_HEADER", trusted)
                    if trusted is not None
                    else settings.trust_tenant_header
                ),
            )

        if (tokens := get("API_TOKENS")) is not None:
            settings = settings.with_api_tokens(_parse_tokens(prefix + "API_TOKENS", tokens))

        if (policy := get("COUPON_POLICY")) is not None:
            try:
                settings = settings.with_coupon_policy(CouponPolicy(policy.lower()))
            except ValueError:
                raise ValueError(
                    f"{prefix}COUPON_POLICY must be one of "
                    f"{', '.join(p.value for p in CouponPolicy)}, got {policy!r}"
                ) from None

        if (timeout := get("RESERVATION_TIMEOUT")) is not None:
            settings = settings.with_reservation_timeout(
                seconds=_parse_positive(prefix + "RESERVATION_TIMEOUT", timeout)
            )

        retries = get("COMPENSATION_RETRIES")
        retry_delay = get("COMPENSATION_RETRY_DELAY")
        if retries is not None or retry_delay is not None:
            settings = settings.with_compensation_retry(
                (
                    int(_parse_positive(prefix + "COMPENSATION_RETRIES", retries))
                    if retries is not None
                    else settings.compensation_retry.times
                ),
                (
                    timedelta(seconds=_parse_non_negative(prefix + "COMPENSATION_RETRY_DELAY", retry_delay))
                    if retry_delay is not None
                    else settings.compensation_retry.delay
                ),
            )

        if (level := get("LOG_LEVEL")) is not None:
            settings = settings.with_log_level(level)

        return settings


# ═══════════════════════════════════════════════════════════════════════════════
# Parsing helpers
# ═══════════════════════════════════════════════════════════════════════════════

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _parse_positive(name: str, raw: str) -> float:
    value = _parse_non_negative(name, raw)
    if value == 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _parse_non_negative(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


def _parse_tokens(name: str, raw: str) -> dict[str, str]:
    """``token=tenant,token2=tenant2``"""
    tokens: dict[str, str] = {}
    for pair in raw.split(","):
        if not pair.strip():
            continue
        token, sep, tenant = pair.partition("=")
        if not sep or not token.strip() or not tenant.strip():
            raise ValueError(f"{name} entries must look like token=tenant, got {pair!r}")
        tokens[token.strip()] = tenant.strip()
    return tokens


__all__ = ("CouponPolicy", "Settings")
