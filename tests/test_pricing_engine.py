"""
Pricing engine tests: day counting, discount tiers, compounding and VAT.
"""
import os
import sys
from datetime import date
from decimal import Decimal

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from airtime_sales.engine import (
    CustomerCategory,
    PaymentTiming,
    PricingEngine,
    PricingInput,
    calculate_pricing,
)

ALL_DAYS = frozenset(range(7))


@pytest.fixture(scope="module")
def engine():
    return PricingEngine()


def make_input(**overrides) -> PricingInput:
    values = dict(
        unit_price=Decimal("1000"),
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 7),
        slot_count=1,
        active_weekdays=ALL_DAYS,
        customer_category=CustomerCategory.PRIVATE,
        payment_timing=PaymentTiming.AFTER_AIRING,
    )
    values.update(overrides)
    return PricingInput(**values)


def test_weekday_only_week(engine):
    """2024-01-01..07 with Mon-Fri active counts five days."""
    result = engine.calculate(make_input(active_weekdays={1, 2, 3, 4, 5}))
    assert result.total_days == 5
    assert result.base_total == Decimal("5000")


def test_zero_slots_means_one_airing(engine):
    result = engine.calculate(make_input(slot_count=0))
    assert result.times_per_day == 1
    assert result.base_total == Decimal("7000")


def test_base_total_multiplies_slots_and_days(engine):
    result = engine.calculate(make_input(slot_count=3, active_weekdays={0, 6}))
    # Jan 6 (Sat) and Jan 7 (Sun)
    assert result.total_days == 2
    assert result.times_per_day == 3
    assert result.base_total == Decimal("6000")


def test_days_counted_across_leap_day(engine):
    """Feb 2024 has 29 days; every day active."""
    result = engine.calculate(make_input(start_date=date(2024, 2, 1), end_date=date(2024, 2, 29)))
    assert result.total_days == 29


@pytest.mark.parametrize("end_date", [date(2024, 1, 10), date(2025, 2, 3)])
def test_government_always_forty_percent(engine, end_date):
    """A 10-day and a 400-day government order both get 40%."""
    result = engine.calculate(make_input(
        end_date=end_date,
        customer_category=CustomerCategory.GOVERNMENT,
    ))
    assert result.condition_discount_percent == 40


@pytest.mark.parametrize("end_date, months, expected", [
    (date(2024, 2, 9), Decimal(40) / 30, 0),     # 40-day window
    (date(2024, 2, 28), Decimal(59) / 30, 0),    # 59-day window, just under two months
    (date(2024, 2, 29), Decimal(2), 20),         # 60-day window
    (date(2024, 3, 30), Decimal(3), 25),         # 90-day window
    (date(2024, 6, 28), Decimal(6), 30),         # 180-day window
])
def test_private_duration_tiers(engine, end_date, months, expected):
    result = engine.calculate(make_input(end_date=end_date))
    assert result.campaign_months == months
    assert result.condition_discount_percent == expected, \
        f"{months} months should earn {expected}%, got {result.condition_discount_percent}%"


def test_state_enterprise_follows_duration_tiers(engine):
    short = engine.calculate(make_input(customer_category=CustomerCategory.STATE_ENTERPRISE))
    long = engine.calculate(make_input(
        end_date=date(2024, 3, 30),
        customer_category=CustomerCategory.STATE_ENTERPRISE,
    ))
    assert short.condition_discount_percent == 0
    assert long.condition_discount_percent == 25


def test_thirty_one_day_month_exceeds_one_month(engine):
    """January is 31 days, which is more than one flat 30-day month."""
    result = engine.calculate(make_input(end_date=date(2024, 1, 31)))
    assert result.campaign_months > 1


def test_payment_discount_compounds_on_discounted_amount(engine):
    """
    60-day private window, Saturdays only: 8 Saturdays × 1250 = 10000 base.
    20% condition then 5% prepayment on the remaining 8000.
    """
    result = engine.calculate(make_input(
        unit_price=Decimal("1250"),
        end_date=date(2024, 2, 29),
        active_weekdays={6},
        payment_timing=PaymentTiming.BEFORE_AIRING,
    ))
    assert result.total_days == 8
    assert result.base_total == Decimal("10000")
    assert result.condition_discount_percent == 20
    assert result.payment_discount_percent == 5
    assert result.condition_discount_amount == Decimal("2000")
    assert result.payment_discount_amount == Decimal("400")
    assert result.total_discount_amount == Decimal("2400")
    assert result.price_after_discount == Decimal("7600")
    assert result.vat_amount == Decimal("532")
    assert result.net_total == Decimal("8132")


def test_after_airing_has_no_payment_discount(engine):
    result = engine.calculate(make_input())
    assert result.payment_discount_percent == 0
    assert result.payment_discount_amount == 0


def test_totals_are_consistent(engine):
    result = engine.calculate(make_input(
        unit_price=Decimal("1234.56"),
        slot_count=4,
        end_date=date(2024, 4, 15),
        active_weekdays={1, 3, 5},
        customer_category=CustomerCategory.STATE_ENTERPRISE,
        payment_timing=PaymentTiming.BEFORE_AIRING,
    ))
    assert result.total_discount_amount == result.condition_discount_amount + result.payment_discount_amount
    assert result.price_after_discount == result.base_total - result.total_discount_amount
    assert result.vat_amount == result.price_after_discount * Decimal("0.07")
    assert result.net_total >= result.price_after_discount >= 0


def test_no_active_weekdays_is_zero_not_error(engine):
    result = engine.calculate(make_input(active_weekdays=set(), end_date=date(2024, 12, 31)))
    assert result is not None
    assert result.total_days == 0
    assert result.base_total == 0
    assert result.vat_amount == 0
    assert result.net_total == 0


@pytest.mark.parametrize("overrides", [
    {"unit_price": None},
    {"start_date": None},
    {"end_date": None},
    {"end_date": date(2023, 12, 31)},
])
def test_not_computable_returns_none(engine, overrides):
    request = make_input(**overrides)
    assert engine.calculate(request) is None
    assert engine.not_computable_reason(request)


def test_single_day_window(engine):
    result = engine.calculate(make_input(end_date=date(2024, 1, 1)))
    assert result.total_days == 1
    assert result.campaign_months == Decimal(1) / 30


def test_idempotent(engine):
    request = make_input(end_date=date(2024, 5, 1), payment_timing=PaymentTiming.BEFORE_AIRING)
    first = engine.calculate(request)
    second = engine.calculate(request)
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_module_level_calculate_matches_engine(engine):
    request = make_input(customer_category=CustomerCategory.GOVERNMENT)
    assert calculate_pricing(request) == engine.calculate(request)


def test_input_accepts_float_price_and_labels():
    request = PricingInput(
        unit_price=1500.5,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 1),
        customer_category="ราชการ",
        payment_timing="before_airing",
    )
    assert request.unit_price == Decimal("1500.5")
    assert request.customer_category == CustomerCategory.GOVERNMENT
    assert request.payment_timing == PaymentTiming.BEFORE_AIRING


def test_trace_describes_discount(engine):
    result = engine.calculate(make_input(customer_category=CustomerCategory.GOVERNMENT))
    text = result.get_trace_text()
    assert "Government flat rate" in text
    assert "Net Total" in text


def test_result_survives_dict_round_trip(engine):
    result = engine.calculate(make_input(end_date=date(2024, 2, 9)))
    restored = type(result).from_dict(result.to_dict())
    assert restored == result
    assert restored.campaign_months == result.campaign_months
