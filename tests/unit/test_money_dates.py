"""Unit tests for money, date and clock helpers"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from agency_ledger.utils.clock import Clock, FixedClock
from agency_ledger.utils.date_utils import add_months, day_key, generate_date_range, month_bounds, month_key
from agency_ledger.utils.money import money_sum, to_money


def test_to_money_rounds_half_up():
    assert to_money(Decimal("2.675")) == Decimal("2.68")
    assert to_money("0.125") == Decimal("0.13")
    assert to_money(10) == Decimal("10.00")


def test_to_money_float_uses_decimal_text():
    assert to_money(0.1) == Decimal("0.10")
    assert str(to_money(0.1 + 0.2)) == "0.30"


def test_money_sum_exact():
    assert money_sum([Decimal("0.10")] * 3) == Decimal("0.30")
    assert money_sum([]) == Decimal("0.00")


@pytest.mark.parametrize(
    "start,months,expected",
    [
        (date(2025, 1, 15), 1, date(2025, 2, 15)),
        (date(2025, 1, 31), 1, date(2025, 2, 28)),
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2025, 11, 30), 3, date(2026, 2, 28)),
        (date(2025, 3, 31), -1, date(2025, 2, 28)),
        (date(2025, 1, 15), -12, date(2024, 1, 15)),
    ],
)
def test_add_months(start, months, expected):
    assert add_months(start, months) == expected


def test_generate_date_range_inclusive():
    days = generate_date_range(date(2024, 2, 28), date(2024, 3, 1))

    assert days == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]


def test_bucket_keys():
    assert month_key(date(2025, 1, 2)) == "2025-01"
    assert day_key(date(2025, 1, 2)) == "2025-01-02"


def test_month_bounds():
    assert month_bounds("2025-02") == (date(2025, 2, 1), date(2025, 2, 28))
    assert month_bounds("2025-12") == (date(2025, 12, 1), date(2025, 12, 31))


@pytest.mark.parametrize("key", ["2025-13", "2025", "jan-2025", ""])
def test_month_bounds_invalid(key):
    with pytest.raises(ValueError):
        month_bounds(key)


def test_clock_is_utc():
    now = Clock().now()
    assert now.tzinfo == timezone.utc


def test_fixed_clock_advance():
    clock = FixedClock(datetime(2025, 1, 31, 23, 0, tzinfo=timezone.utc))

    clock.advance(seconds=3600)

    assert clock.today() == date(2025, 2, 1)
    assert clock.now() == datetime(2025, 2, 1, 0, 0, tzinfo=timezone.utc)
