"""Limit policy - pure monthly cap arithmetic.

Direction-agnostic: callers pass the (current, limit) pair that matches the
transaction's direction.
"""

from decimal import ROUND_HALF_UP, Decimal

from cashbook.schemas.report import LimitUsage

NEAR_LIMIT_PERCENT = 80
CRITICAL_LIMIT_PERCENT = 95


def percentage_of(current: Decimal, limit: Decimal) -> int:
    """Usage as a whole percentage of the limit, rounded half up.

    Returns 0 when the limit is not positive. Not clamped: may exceed 100.
    """
    if limit <= 0:
        return 0
    return int((current / limit * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_near(current: Decimal, limit: Decimal) -> bool:
    return percentage_of(current, limit) >= NEAR_LIMIT_PERCENT


def is_critical(current: Decimal, limit: Decimal) -> bool:
    return percentage_of(current, limit) >= CRITICAL_LIMIT_PERCENT


def remaining(current: Decimal, limit: Decimal) -> Decimal:
    """Headroom left under the limit (negative when already over)."""
    return limit - current


def would_exceed(current: Decimal, limit: Decimal, amount: Decimal) -> bool:
    """Whether adding ``amount`` breaches the limit. Reaching it exactly is allowed."""
    return current + amount > limit


def usage(current: Decimal, limit: Decimal) -> LimitUsage:
    """Bundle all policy values for one cap."""
    percentage = percentage_of(current, limit)
    return LimitUsage(
        current=current,
        limit=limit,
        remaining=remaining(current, limit),
        percentage=percentage,
        is_near=percentage >= NEAR_LIMIT_PERCENT,
        is_critical=percentage >= CRITICAL_LIMIT_PERCENT,
    )
