from decimal import Decimal

from cashbook.services import limit_policy


def test_percentage_of_rounds_half_up():
    assert limit_policy.percentage_of(Decimal("805"), Decimal("1000")) == 81
    assert limit_policy.percentage_of(Decimal("804"), Decimal("1000")) == 80
    assert limit_policy.percentage_of(Decimal("1"), Decimal("3")) == 33


def test_percentage_of_zero_limit_is_zero():
    assert limit_policy.percentage_of(Decimal("50"), Decimal("0")) == 0


def test_percentage_can_exceed_hundred():
    assert limit_policy.percentage_of(Decimal("150"), Decimal("100")) == 150


def test_near_and_critical_thresholds():
    limit = Decimal("100")
    assert not limit_policy.is_near(Decimal("79"), limit)
    assert limit_policy.is_near(Decimal("80"), limit)
    assert not limit_policy.is_critical(Decimal("94"), limit)
    assert limit_policy.is_critical(Decimal("95"), limit)


def test_remaining_may_be_negative():
    assert limit_policy.remaining(Decimal("950"), Decimal("1000")) == Decimal("50")
    assert limit_policy.remaining(Decimal("120"), Decimal("100")) == Decimal("-20")


def test_limit_is_inclusive():
    assert not limit_policy.would_exceed(Decimal("90"), Decimal("100"), Decimal("10"))
    assert limit_policy.would_exceed(Decimal("90"), Decimal("100"), Decimal("10.01"))


def test_zero_limit_means_no_headroom():
    assert limit_policy.would_exceed(Decimal("0"), Decimal("0"), Decimal("0.01"))


def test_usage_bundles_values():
    usage = limit_policy.usage(Decimal("96"), Decimal("100"))
    assert usage.remaining == Decimal("4")
    assert usage.percentage == 96
    assert usage.is_near and usage.is_critical
