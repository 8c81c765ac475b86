import pandas as pd

from budget_engine.models import ExpenseDefinition
from budget_engine.periods import period_range
from budget_engine.recurrence import (
    advance_due_date,
    count_occurrences,
    expense_urgency,
    group_by_month,
    iter_occurrences,
    project_occurrences,
)

SYDNEY = 'Australia/Sydney'


def _utc(text):
    return pd.Timestamp(text, tz='UTC')


def _expense(expense_id='e1', amount=10000, recurrence='monthly', due='2026-02-15'):
    return ExpenseDefinition(
        id=expense_id,
        category_name='Home',
        expected_amount_cents=amount,
        recurrence_type=recurrence,
        inferred_subcategory='Rent',
        next_due_date=due,
        name=f"Expense {expense_id}",
    )


def test_month_end_anchor_clamps_into_february():
    assert count_occurrences('2026-01-31', 'monthly', '2026-02-01', '2026-02-28') == 1


def test_month_end_anchor_returns_to_the_31st():
    due_dates = list(project_occurrences(_expense(due='2026-01-31'), '2026-02-01', '2026-04-30', tz='UTC'))
    assert [o.due for o in due_dates] == [_utc('2026-02-28'), _utc('2026-03-31'), _utc('2026-04-30')]


def test_leap_year_february():
    due_dates = project_occurrences(_expense(due='2028-01-31'), '2028-02-01', '2028-02-29', tz='UTC')
    assert [o.due for o in due_dates] == [_utc('2028-02-29')]


def test_weekly_occurrences_in_february():
    assert count_occurrences('2026-02-02', 'weekly', '2026-02-01', '2026-02-28') == 4


def test_weekly_anchor_after_window_steps_backwards():
    # 10 March steps back to 3, 10, 17 and 24 February
    assert count_occurrences('2026-03-10', 'weekly', '2026-02-01', '2026-02-28') == 4


def test_fortnightly_anchor_before_window():
    # 5 Jan, 19 Jan, 2 Feb, 16 Feb, 2 Mar
    assert count_occurrences('2026-01-05', 'fortnightly', '2026-02-01', '2026-02-28') == 2


def test_quarterly_and_yearly_grids():
    assert count_occurrences('2026-01-15', 'quarterly', '2026-04-01', '2026-04-30') == 1
    assert count_occurrences('2026-01-15', 'quarterly', '2026-05-01', '2026-05-31') == 0
    assert count_occurrences('2025-06-30', 'yearly', '2026-06-01', '2026-06-30') == 1
    assert count_occurrences('2025-06-30', 'yearly', '2026-07-01', '2026-07-31') == 0


def test_monthly_anchor_after_window_counts_nothing():
    assert count_occurrences('2026-05-10', 'monthly', '2026-02-01', '2026-02-28') == 0


def test_one_time_expense():
    assert count_occurrences('2026-02-14', 'one-time', '2026-02-01', '2026-02-28') == 1
    assert count_occurrences('2026-03-14', 'one-time', '2026-02-01', '2026-02-28') == 0


def test_unreadable_anchor_counts_zero():
    assert count_occurrences('someday', 'monthly', '2026-02-01', '2026-02-28') == 0
    assert count_occurrences(None, 'weekly', '2026-02-01', '2026-02-28') == 0


def test_unknown_recurrence_behaves_monthly():
    assert count_occurrences('2026-01-20', 'bimonthly-ish', '2026-02-01', '2026-02-28') == 1


def test_counts_use_the_period_timezone():
    period = period_range('2026-02-10', 'monthly', SYDNEY)

    assert count_occurrences('2026-02-01', 'monthly', period.start, period.end) == 1
    assert count_occurrences('2026-02-28', 'monthly', period.start, period.end) == 1
    assert count_occurrences('2026-03-01', 'monthly', period.start, period.end) == 0
    assert count_occurrences('2026-02-02', 'weekly', period.start, period.end) == 4


def test_advance_due_date():
    assert advance_due_date('2026-01-31', 'monthly', 'UTC') == _utc('2026-02-28')
    assert advance_due_date('2026-02-10', 'weekly', 'UTC') == _utc('2026-02-17')
    assert advance_due_date('2026-02-10', 'fortnightly', 'UTC') == _utc('2026-02-24')
    assert advance_due_date('2026-11-30', 'quarterly', 'UTC') == _utc('2027-02-28')
    assert advance_due_date('2026-02-10', 'yearly', 'UTC') == _utc('2027-02-10')
    assert advance_due_date('2026-02-10', 'one-time', 'UTC') == _utc('2026-02-10')
    assert advance_due_date('garbage', 'monthly', 'UTC') is None


def test_project_occurrences_marks_projections_and_limits():
    projected = project_occurrences(_expense(due='2026-02-15'), '2026-02-01', '2026-12-31', limit=3, tz='UTC')

    assert [o.due for o in projected] == [_utc('2026-02-15'), _utc('2026-03-15'), _utc('2026-04-15')]
    assert [o.is_projection for o in projected] == [False, True, True]
    assert [o.occurrence_index for o in projected] == [0, 1, 2]


def test_project_occurrences_without_due_date():
    assert project_occurrences(_expense(due=None), '2026-02-01', '2026-12-31', tz='UTC') == []


def test_group_by_month():
    rent = _expense('rent', amount=200000, due='2026-01-15')
    gym = _expense('gym', amount=5000, due='2026-02-20')
    projected = (
        project_occurrences(rent, '2026-01-01', '2026-04-30', tz='UTC')
        + project_occurrences(gym, '2026-01-01', '2026-03-31', tz='UTC')
    )

    groups = group_by_month(projected, '2026-02-10', tz='UTC')

    assert [g.key for g in groups] == ['2026-01', 'this-month', 'next-month', '2026-04']
    assert [g.label for g in groups] == ['January 2026', 'This Month', 'Next Month', 'April 2026']
    assert [g.total_cents for g in groups] == [200000, 205000, 205000, 200000]
    assert [g.is_past for g in groups] == [True, False, False, False]
    assert [o.expense.id for o in groups[1].occurrences] == ['rent', 'gym']


def test_expense_urgency():
    reference = '2026-02-10T08:00:00Z'
    assert expense_urgency('2026-02-09', reference, tz='UTC') == 'overdue'
    assert expense_urgency('2026-02-10', reference, tz='UTC') == 'due-today'
    assert expense_urgency('2026-02-13', reference, tz='UTC') == 'due-soon'
    assert expense_urgency('2026-02-16', reference, tz='UTC') == 'upcoming'
    assert expense_urgency('2026-02-20', reference, tz='UTC') == 'future'


def test_weekly_anchor_decades_away_from_the_window():
    # 1990-01-01 and 2040-01-02 are both Mondays
    assert count_occurrences('1990-01-01', 'weekly', '2026-02-01', '2026-02-28') == 4
    assert count_occurrences('2040-01-02', 'weekly', '2026-02-01', '2026-02-28') == 4

    period = period_range('2026-02-10', 'monthly', SYDNEY)
    dues = list(iter_occurrences('2000-01-03', 'weekly', period.start, period.end))
    assert [d.tz_convert(SYDNEY).day for d in dues] == [2, 9, 16, 23]


def test_bare_date_anchor_matches_the_period_west_of_utc():
    new_york = 'America/New_York'
    period = period_range('2026-03-01', 'monthly', new_york)

    assert count_occurrences('2026-03-01', 'one-time', period.start, period.end) == 1
    assert count_occurrences('2026-02-28', 'one-time', period.start, period.end) == 0


def test_unreadable_due_date_has_no_urgency():
    assert expense_urgency('garbage', '2026-02-10T00:00:00Z', tz='UTC') is None
    assert expense_urgency(None, '2026-02-10T00:00:00Z', tz='UTC') is None
