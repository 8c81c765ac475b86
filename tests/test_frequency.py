from fractions import Fraction

import pytest

from budget_engine.frequency import convert_frequency, prorate_monthly_amount
from budget_engine.money import apply_percentage, format_currency, format_percent, round_half_up


@pytest.mark.parametrize('amount, source, target, expected', [
    (1000, 'weekly', 'monthly', 4000),
    (4000, 'monthly', 'weekly', 1000),
    (5000, 'fortnightly', 'monthly', 10000),
    (30000, 'quarterly', 'monthly', 10000),
    (120000, 'yearly', 'monthly', 10000),
    (120000, 'yearly', 'fortnightly', 5000),
    (10000, 'monthly', 'yearly', 120000),
    (1000, 'weekly', 'quarterly', 12000),
])
def test_convert_frequency(amount, source, target, expected):
    assert convert_frequency(amount, source, target) == expected


def test_same_frequency_is_unchanged():
    assert convert_frequency(12345, 'fortnightly', 'fortnightly') == 12345
    assert convert_frequency(777, 'yearly', 'yearly') == 777


def test_unknown_frequency_is_treated_as_monthly():
    assert convert_frequency(5000, 'every-so-often', 'weekly') == 1250
    assert convert_frequency(5000, 'monthly', 'whenever') == 5000


def test_rounding_happens_once_and_half_up():
    assert convert_frequency(10, 'monthly', 'weekly') == 3  # 2.5
    assert convert_frequency(6, 'yearly', 'monthly') == 1  # 0.5
    assert convert_frequency(2, 'yearly', 'monthly') == 0
    # yearly -> weekly goes through monthly without intermediate rounding
    assert convert_frequency(100, 'yearly', 'weekly') == 2  # 100 / 48 = 2.08


def test_fine_to_coarse_round_trip_is_exact():
    for amount in range(0, 5000, 37):
        monthly = convert_frequency(amount, 'weekly', 'monthly')
        assert convert_frequency(monthly, 'monthly', 'weekly') == amount


def test_coarse_to_fine_round_trip_stays_close():
    for amount in range(0, 5000, 37):
        weekly = convert_frequency(amount, 'monthly', 'weekly')
        # Half a cent of error per week, four weeks per month
        assert abs(convert_frequency(weekly, 'weekly', 'monthly') - amount) <= 2


@pytest.mark.parametrize('coarse, fine, bound', [
    ('yearly', 'weekly', 24),
    ('yearly', 'fortnightly', 12),
    ('yearly', 'monthly', 6),
    ('quarterly', 'weekly', 6),
    ('quarterly', 'monthly', 1),
])
def test_coarse_to_fine_round_trip_drift_bounds(coarse, fine, bound):
    worst = 0
    for amount in range(0, 3000):
        there = convert_frequency(amount, coarse, fine)
        worst = max(worst, abs(convert_frequency(there, fine, coarse) - amount))
    assert worst == bound


def test_small_yearly_amounts_drift_through_weekly():
    assert convert_frequency(10, 'yearly', 'weekly') == 0
    assert convert_frequency(24, 'yearly', 'weekly') == 1
    assert convert_frequency(1, 'weekly', 'yearly') == 48


def test_prorate_monthly_amount():
    assert prorate_monthly_amount(100000, 'weekly') == 25000
    assert prorate_monthly_amount(100000, 'fortnightly') == 50000
    assert prorate_monthly_amount(100000, 'monthly') == 100000


def test_round_half_up():
    assert round_half_up(Fraction(5, 2)) == 3
    assert round_half_up(-2.5) == -3
    assert round_half_up(2.4999) == 2
    assert round_half_up(0.5) == 1
    assert round_half_up(7) == 7


def test_apply_percentage():
    assert apply_percentage(10000, 70) == 7000
    assert apply_percentage(333, 50) == 167
    assert apply_percentage(1001, 33.3) == 333


def test_format_currency_and_percent():
    assert format_currency(123456) == '$1,235'
    assert format_currency(-50000) == '-$500'
    assert format_currency(0) == '$0'
    assert format_currency(123456, include_sign=False) == '1,235'
    assert format_percent(42.5) == '43%'
    assert format_percent(0) == '0%'
