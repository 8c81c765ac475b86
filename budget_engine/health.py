"""Financial health scoring.

Two kinds of score live here: the 0-100 budget health score for a single
period, and the set of household health metrics (net worth, savings rate,
emergency fund and so on), each graded good / warning / concern.  Metric
thresholds come from ``settings/health.json``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .models import Assignment, ExpenseDefinition, ExpensePayment, Goal
from .money import format_currency, format_percent, round_half_up
from .settings import load_thresholds
from .tz_calendar import to_instant

logger = logging.getLogger(__name__)

HEALTH_CONFIG = load_thresholds()

# Points awarded per budget health criterion
CRITERION_POINTS = 20
ASSIGNED_INCOME_TARGET = 90


@dataclass(frozen=True)
class HealthMetric:
    id: str
    label: str
    value: str
    raw_value: float
    status: str  # 'good', 'warning' or 'concern'
    trend: str  # 'up', 'down' or 'flat'
    status_label: str


@dataclass(frozen=True)
class NetWorthSnapshot:
    snapshot_date: str
    total_balance_cents: int
    investment_total_cents: Optional[int] = None


@dataclass(frozen=True)
class HealthMetricInputs:
    monthly_income_cents: int = 0
    monthly_spending_cents: int = 0
    liquid_balance_cents: int = 0
    monthly_essentials_cents: int = 0
    essential_cents: int = 0
    discretionary_cents: int = 0
    total_expense_definitions: int = 0
    matched_expense_count: int = 0
    home_loan_balance_cents: int = 0
    annual_income_cents: int = 0
    net_worth_snapshots: Sequence[NetWorthSnapshot] = ()
    previous_savings_rates: Sequence[float] = ()
    goals: Sequence[Goal] = ()


def _tenths(value: float) -> str:
    """Render a value rounded half-up to one decimal place, e.g. '4.5' or '6'."""
    rounded = round_half_up(Fraction(repr(float(value))) * 10) / 10
    return f"{rounded:.1f}".rstrip("0").rstrip(".")


# ---------------------------------------------------------------------------
# Budget health score
# ---------------------------------------------------------------------------


def calculate_budget_health(tbb: int, assignments: Sequence[Assignment], spending: Mapping[str, int],
                            expenses: Sequence[ExpenseDefinition],
                            payments: Sequence[ExpensePayment]) -> float:
    """Score how well a period is budgeted, from 0 to 100.

    Five criteria are worth 20 points each:
        - to-be-budgeted is exactly zero
        - no category has spent more than it was assigned
        - expenses were paid by their due date (pro rata; full marks when
          no expenses are tracked)
        - at least 90% of income is assigned (only when TBB is not negative)
        - no category has a negative available balance

    Args:
        tbb: To-be-budgeted for the period in cents
        assignments: Category assignments for the period
        spending: Spent cents keyed by category name
        expenses: Tracked expense definitions
        payments: Matches of transactions to expense definitions

    Returns:
        Score between 0 and 100
    """
    score = 0.0

    if tbb == 0:
        score += CRITERION_POINTS

    def _spent(assignment: Assignment) -> int:
        return spending.get(assignment.category_name, 0)

    if all(_spent(a) <= a.assigned_cents for a in assignments):
        score += CRITERION_POINTS

    if expenses:
        paid_at = {p.expense_definition_id: p.matched_at for p in payments}
        on_time = 0
        for expense in expenses:
            matched = to_instant(paid_at.get(expense.id))
            due = to_instant(expense.next_due_date)
            if matched is not None and due is not None and matched <= due:
                on_time += 1
        score += on_time / len(expenses) * CRITERION_POINTS
    else:
        score += CRITERION_POINTS

    if tbb >= 0:
        total_assigned = sum(a.assigned_cents for a in assignments)
        total_income = total_assigned + tbb
        assigned_pct = total_assigned / total_income * 100 if total_income > 0 else 0
        if assigned_pct >= ASSIGNED_INCOME_TARGET:
            score += CRITERION_POINTS

    if all(a.assigned_cents - _spent(a) >= 0 for a in assignments):
        score += CRITERION_POINTS

    return min(100.0, max(0.0, score))


# ---------------------------------------------------------------------------
# Household health metrics
# ---------------------------------------------------------------------------


def calculate_net_worth_trend(snapshots: Sequence[NetWorthSnapshot]) -> HealthMetric:
    """Compare the latest net worth snapshot against the earliest one."""
    if not snapshots:
        return HealthMetric(
            id='net-worth', label='Net Worth', value='$0', raw_value=0,
            status='concern', trend='flat', status_label='No net worth data available yet',
        )

    df = pd.DataFrame([
        {
            'date': pd.to_datetime(s.snapshot_date, errors='coerce', utc=True),
            'value': s.total_balance_cents + (s.investment_total_cents or 0),
        }
        for s in snapshots
    ]).sort_values('date', kind='mergesort', na_position='first')

    earliest_value = int(df['value'].iloc[0])
    latest_value = int(df['value'].iloc[-1])
    delta = latest_value - earliest_value
    threshold = abs(earliest_value) * HEALTH_CONFIG['net_worth']['flat_threshold_ratio']

    if delta > threshold:
        trend, status = 'up', 'good'
        status_label = f"Your net worth is growing, up {format_currency(abs(delta))} recently"
    elif delta < -threshold:
        trend, status = 'down', 'concern'
        status_label = f"Your net worth has decreased {format_currency(abs(delta))} recently"
    else:
        trend, status = 'flat', 'warning'
        status_label = 'Your net worth has been stable recently'

    return HealthMetric(
        id='net-worth', label='Net Worth', value=format_currency(latest_value),
        raw_value=latest_value, status=status, trend=trend, status_label=status_label,
    )


def calculate_savings_rate_metric(monthly_income_cents: int, monthly_spending_cents: int,
                                  previous_rates: Sequence[float] = ()) -> HealthMetric:
    """Savings rate as a share of income, trended against previous months."""
    thresholds = HEALTH_CONFIG['savings_rate']
    rate = 0.0
    if monthly_income_cents > 0:
        rate = (monthly_income_cents - monthly_spending_cents) / monthly_income_cents * 100
    rate = max(0.0, rate)

    trend = 'flat'
    if len(previous_rates) > 0:
        average = float(np.mean(previous_rates))
        if rate > average + thresholds['trend_deadband']:
            trend = 'up'
        elif rate < average - thresholds['trend_deadband']:
            trend = 'down'

    if rate >= thresholds['good']:
        status = 'good'
        status_label = f"Your savings rate is healthy at {format_percent(rate)}"
    elif rate >= thresholds['warning']:
        status = 'warning'
        status_label = f"Your savings rate of {format_percent(rate)} could be improved"
    else:
        status = 'concern'
        if rate > 0:
            status_label = f"Your savings rate of {format_percent(rate)} is below the recommended 10%"
        else:
            status_label = "You're spending more than you earn"

    return HealthMetric(
        id='savings-rate', label='Savings Rate', value=format_percent(rate),
        raw_value=rate, status=status, trend=trend, status_label=status_label,
    )


def calculate_emergency_fund_metric(liquid_balance_cents: int, monthly_essentials_cents: int) -> HealthMetric:
    """Months of essential spending covered by liquid savings."""
    if monthly_essentials_cents <= 0:
        return HealthMetric(
            id='emergency-fund', label='Emergency Fund', value=format_currency(liquid_balance_cents),
            raw_value=0, status='warning', trend='flat',
            status_label='Not enough spending data to assess emergency fund',
        )

    thresholds = HEALTH_CONFIG['emergency_fund']
    months = liquid_balance_cents / monthly_essentials_cents
    shown = _tenths(months)

    if months >= thresholds['good_months']:
        status = 'good'
        status_label = f"You have {shown} months of essential expenses covered"
    elif months >= thresholds['warning_months']:
        status = 'warning'
        status_label = f"{shown} months covered, aim for 6 months of essentials"
    else:
        status = 'concern'
        if months > 0:
            status_label = f"Only {shown} months of essentials covered, build to 3+ months"
        else:
            status_label = 'No emergency fund, prioritise building one'

    return HealthMetric(
        id='emergency-fund', label='Emergency Fund', value=f"{shown} mo",
        raw_value=months, status=status, trend='flat', status_label=status_label,
    )


def calculate_goals_progress_metric(goals: Sequence[Goal]) -> HealthMetric:
    """Combined progress of all goals that are not yet completed."""
    active = [g for g in goals if not g.is_completed]
    if not active:
        return HealthMetric(
            id='goals-progress', label='Goals Progress', value='No goals', raw_value=0,
            status='warning', trend='flat',
            status_label='Set some savings goals to track your progress',
        )

    thresholds = HEALTH_CONFIG['goals_progress']
    total_current = sum(g.current_cents for g in active)
    total_target = sum(g.target_cents for g in active)
    percent = total_current / total_target * 100 if total_target > 0 else 0.0

    if percent >= thresholds['good']:
        status = 'good'
        status_label = f"{format_percent(percent)} of your savings goals reached"
    elif percent >= thresholds['warning']:
        status = 'warning'
        status_label = f"{format_percent(percent)} of goals reached, keep saving"
    else:
        status = 'concern'
        status_label = f"{format_percent(percent)} of goals reached, consider increasing contributions"

    return HealthMetric(
        id='goals-progress', label='Goals Progress', value=format_percent(percent),
        raw_value=percent, status=status, trend='flat', status_label=status_label,
    )


def calculate_spending_ratio_metric(essential_cents: int, discretionary_cents: int) -> HealthMetric:
    """Share of spending that goes to essentials."""
    total = essential_cents + discretionary_cents
    if total == 0:
        return HealthMetric(
            id='spending-ratio', label='Essential Ratio', value='N/A', raw_value=0,
            status='warning', trend='flat', status_label='No spending data available yet',
        )

    thresholds = HEALTH_CONFIG['spending_ratio']
    percent = essential_cents / total * 100

    if percent < thresholds['good_below']:
        status = 'good'
        status_label = f"{format_percent(percent)} of spending is on essentials, a good balance"
    elif percent <= thresholds['warning_at_most']:
        status = 'warning'
        status_label = f"{format_percent(percent)} on essentials, some room to optimise"
    else:
        status = 'concern'
        status_label = f"{format_percent(percent)} on essentials, a high ratio; review subscriptions"

    return HealthMetric(
        id='spending-ratio', label='Essential Ratio', value=format_percent(percent),
        raw_value=percent, status=status, trend='flat', status_label=status_label,
    )


def calculate_bills_payment_metric(total_expense_definitions: int, matched_expense_count: int) -> HealthMetric:
    """Share of tracked bills already paid this period."""
    if total_expense_definitions == 0:
        return HealthMetric(
            id='bills-payment', label='Bills Paid', value='N/A', raw_value=0,
            status='good', trend='flat', status_label='No tracked bills this period',
        )

    thresholds = HEALTH_CONFIG['bills_payment']
    rate = matched_expense_count / total_expense_definitions * 100
    outstanding = total_expense_definitions - matched_expense_count

    if rate >= thresholds['good']:
        status = 'good'
        if rate >= 100:
            status_label = 'All bills paid this period'
        else:
            status_label = f"{format_percent(rate)} of bills paid, almost there"
    elif rate >= thresholds['warning']:
        status = 'warning'
        status_label = f"{format_percent(rate)} of bills paid, {outstanding} still due"
    else:
        status = 'concern'
        status_label = f"Only {format_percent(rate)} of bills paid, {outstanding} outstanding"

    return HealthMetric(
        id='bills-payment', label='Bills Paid',
        value=f"{matched_expense_count}/{total_expense_definitions}",
        raw_value=rate, status=status, trend='flat', status_label=status_label,
    )


def calculate_debt_to_income_metric(home_loan_balance_cents: int,
                                    annual_income_cents: int) -> Optional[HealthMetric]:
    """Home loan balance as a multiple of annual income; None without debt."""
    if home_loan_balance_cents <= 0:
        return None

    if annual_income_cents <= 0:
        return HealthMetric(
            id='debt-to-income', label='Debt-to-Income', value='N/A', raw_value=0,
            status='warning', trend='flat',
            status_label='No income data to calculate debt-to-income ratio',
        )

    thresholds = HEALTH_CONFIG['debt_to_income']
    ratio = home_loan_balance_cents / annual_income_cents
    shown = _tenths(ratio)

    if ratio < thresholds['good_below']:
        status = 'good'
        status_label = f"Debt-to-income ratio of {shown}x is manageable"
    elif ratio <= thresholds['warning_at_most']:
        status = 'warning'
        status_label = f"Debt-to-income ratio of {shown}x is moderate"
    else:
        status = 'concern'
        status_label = f"Debt-to-income ratio of {shown}x is high, focus on repayment"

    return HealthMetric(
        id='debt-to-income', label='Debt-to-Income', value=f"{shown}x",
        raw_value=ratio, status=status, trend='flat', status_label=status_label,
    )


def generate_health_metrics(inputs: HealthMetricInputs) -> List[HealthMetric]:
    """Compute every household health metric in display order.

    The debt-to-income metric is only included when there is a home loan.
    """
    metrics = [
        calculate_net_worth_trend(inputs.net_worth_snapshots),
        calculate_savings_rate_metric(inputs.monthly_income_cents, inputs.monthly_spending_cents,
                                      inputs.previous_savings_rates),
        calculate_emergency_fund_metric(inputs.liquid_balance_cents, inputs.monthly_essentials_cents),
        calculate_goals_progress_metric(inputs.goals),
        calculate_spending_ratio_metric(inputs.essential_cents, inputs.discretionary_cents),
        calculate_bills_payment_metric(inputs.total_expense_definitions, inputs.matched_expense_count),
    ]
    debt = calculate_debt_to_income_metric(inputs.home_loan_balance_cents, inputs.annual_income_cents)
    if debt is not None:
        metrics.append(debt)
    return metrics
