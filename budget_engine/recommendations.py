"""Prioritised recommendations and goal interaction warnings.

Everything here takes an explicit ``reference_instant`` instead of reading
the clock, so results depend only on the arguments.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .models import Goal
from .money import apply_percentage, format_currency, round_half_up
from .settings import threshold_section
from .tz_calendar import to_instant

logger = logging.getLogger(__name__)

RECOMMENDATION_CONFIG = threshold_section('recommendations')
INTERACTION_CONFIG = threshold_section('goal_interactions')

PRIORITY_ORDER: Dict[str, int] = {'high': 0, 'medium': 1, 'low': 2}

EMERGENCY_FUND_MINIMUM_MONTHS = 3
SAVINGS_RATE_MINIMUM = 10


@dataclass(frozen=True)
class Recommendation:
    id: str
    priority: str  # 'high', 'medium' or 'low'
    title: str
    description: str
    impact: str
    category: str
    action_href: Optional[str] = None


@dataclass(frozen=True)
class RecommendationInputs:
    emergency_fund_months: float = 0.0
    savings_rate_percent: float = 0.0
    essential_ratio_percent: float = 0.0
    retirement_cap_room_cents: int = 0
    rebalancing_needed: bool = False
    goals_behind_count: int = 0
    unpaid_bills_count: int = 0
    upcoming_goals: Sequence[Goal] = ()
    liquid_balance_cents: int = 0


@dataclass(frozen=True)
class GoalInteraction:
    goal_id: str
    goal_name: str
    warning_message: str
    emergency_fund_months_after: float


def _plural(count: int, singular: str = '', plural: str = 's') -> str:
    return singular if count == 1 else plural


def calculate_retirement_cap_room(annual_salary_cents: int, employer_rate_percent: float,
                                  voluntary_contributions_cents: int = 0) -> Dict[str, int]:
    """Remaining concessional retirement contribution room for the year.

    Args:
        annual_salary_cents: Gross annual salary
        employer_rate_percent: Employer contribution rate, e.g. 11.5
        voluntary_contributions_cents: Salary sacrifice made so far

    Returns:
        Dict with ``cap_cents``, ``used_cents`` and ``remaining_cents``

    Example:
        >>> calculate_retirement_cap_room(10000000, 11.5)
        {'cap_cents': 3000000, 'used_cents': 1150000, 'remaining_cents': 1850000}
    """
    cap = RECOMMENDATION_CONFIG['retirement_cap_cents']
    employer = apply_percentage(annual_salary_cents, employer_rate_percent)
    used = employer + voluntary_contributions_cents
    return {
        'cap_cents': cap,
        'used_cents': used,
        'remaining_cents': max(0, cap - used),
    }


def _goal_deadline_recommendation(goals: Sequence[Goal], liquid_balance_cents: int,
                                  reference: pd.Timestamp) -> Optional[Recommendation]:
    horizon = reference + pd.DateOffset(months=RECOMMENDATION_CONFIG['goal_deadline_months'])
    dated = [(to_instant(g.deadline), g) for g in goals if not g.is_completed]
    dated = sorted(((d, g) for d, g in dated if d is not None), key=lambda item: item[0])

    for deadline, goal in dated:
        if deadline < reference or deadline > horizon:
            continue
        if goal.target_cents <= 0 or liquid_balance_cents >= goal.target_cents:
            continue
        shortfall = goal.target_cents - liquid_balance_cents
        return Recommendation(
            id=f"goal-deadline-{goal.id}",
            priority='high',
            title=f'Save for "{goal.name}"',
            description=(
                f'Your goal "{goal.name}" is coming up and you\'re {format_currency(shortfall)} '
                f'short of the {format_currency(goal.target_cents)} target.'
            ),
            impact=f"Due {deadline.strftime('%b %Y')}",
            category='Goals',
            action_href=f"/goals/{goal.id}",
        )
    return None


def generate_recommendations(inputs: RecommendationInputs, reference_instant: Any) -> List[Recommendation]:
    """Build the household's priority recommendations.

    Rules are checked in a fixed order, then stably sorted high, medium, low
    and cut to the configured maximum (five by default).  At most one goal
    deadline warning is included: the nearest at-risk goal.

    Args:
        inputs: Current household figures
        reference_instant: The "now" used for goal deadlines

    Returns:
        List of Recommendation
    """
    reference = to_instant(reference_instant)
    recs: List[Recommendation] = []

    if inputs.emergency_fund_months < EMERGENCY_FUND_MINIMUM_MONTHS:
        months_needed = math.ceil(EMERGENCY_FUND_MINIMUM_MONTHS - inputs.emergency_fund_months)
        if inputs.emergency_fund_months > 0:
            description = (
                f"You have {inputs.emergency_fund_months:.1f} months of essential expenses saved. "
                f"Aim for at least 3 months."
            )
        else:
            description = ("You don't have an emergency fund yet. Start with a goal to cover "
                           "3 months of essentials.")
        recs.append(Recommendation(
            id='emergency-fund-low', priority='high', title='Build your emergency fund',
            description=description,
            impact=f"Need approximately {months_needed} more months of savings",
            category='Emergency Fund', action_href='/goals',
        ))

    if inputs.savings_rate_percent < SAVINGS_RATE_MINIMUM:
        recs.append(Recommendation(
            id='low-savings-rate', priority='high', title='Increase your savings rate',
            description=(f"Your savings rate is {round_half_up(inputs.savings_rate_percent)}%. "
                         f"Aim for at least 20% for long-term financial health."),
            impact='Review discretionary spending for potential savings',
            category='Budget', action_href='/budget',
        ))

    unpaid = inputs.unpaid_bills_count
    if unpaid > 0:
        recs.append(Recommendation(
            id='unpaid-bills', priority='high',
            title=f"{unpaid} bill{_plural(unpaid)} still due",
            description=(f"You have {unpaid} unpaid bill{_plural(unpaid)} this period. "
                         f"Check your expenses to avoid late fees."),
            impact='Avoid late fees and maintain good payment history',
            category='Bills', action_href='/budget?tab=expenses',
        ))

    if reference is not None:
        goal_rec = _goal_deadline_recommendation(inputs.upcoming_goals, inputs.liquid_balance_cents,
                                                 reference)
        if goal_rec is not None:
            recs.append(goal_rec)

    if inputs.retirement_cap_room_cents > RECOMMENDATION_CONFIG['retirement_room_threshold_cents']:
        recs.append(Recommendation(
            id='retirement-cap-room', priority='medium', title='Unused retirement contribution room',
            description=(f"You have {format_currency(inputs.retirement_cap_room_cents)} of unused "
                         f"concessional cap this financial year. Salary sacrifice could reduce your tax."),
            impact='Tax-effective way to boost retirement savings',
            category='Retirement', action_href='/settings/fire',
        ))

    if inputs.essential_ratio_percent > RECOMMENDATION_CONFIG['high_essential_ratio']:
        recs.append(Recommendation(
            id='high-essentials', priority='medium', title='High essential spending ratio',
            description=(f"{round_half_up(inputs.essential_ratio_percent)}% of your spending is on "
                         f"essentials. Review recurring subscriptions and utilities."),
            impact='Freeing up 5% could add hundreds to monthly savings',
            category='Budget', action_href='/budget',
        ))

    behind = inputs.goals_behind_count
    if behind > 0:
        recs.append(Recommendation(
            id='goals-behind', priority='medium',
            title=f"{behind} goal{_plural(behind, ' is', 's are')} behind target",
            description='Review your savings goals and consider adjusting contribution amounts or timelines.',
            impact='Staying on track prevents last-minute financial stress',
            category='Goals', action_href='/goals',
        ))

    if inputs.rebalancing_needed:
        recs.append(Recommendation(
            id='rebalancing', priority='low', title='Portfolio needs rebalancing',
            description='One or more asset classes have drifted more than 5% from your target allocation.',
            impact='Rebalancing maintains your desired risk level',
            category='Investments', action_href='/invest',
        ))

    recs.sort(key=lambda r: PRIORITY_ORDER[r.priority])
    return recs[:RECOMMENDATION_CONFIG['max_results']]


def analyze_goal_interactions(goals: Sequence[Goal], liquid_balance_cents: int,
                              monthly_essentials_cents: int, monthly_savings_cents: int,
                              reference_instant: Any) -> List[GoalInteraction]:
    """Warn about goals that would drain the emergency fund.

    Goals are funded in deadline order from a running balance that grows by
    ``monthly_savings_cents`` per month (a month being 30.44 days) until each
    deadline.  A goal is flagged when the balance left afterwards covers fewer
    than three months of essentials.  Goals whose deadline has passed are
    skipped.

    Example:
        >>> goal = Goal('g1', 'Car', target_cents=1000000, deadline='2027-01-01')
        >>> analyze_goal_interactions([goal], 1000000, 200000, 0, '2026-07-01')[0].emergency_fund_months_after
        0
    """
    if monthly_essentials_cents <= 0:
        return []

    reference = to_instant(reference_instant)
    if reference is None:
        return []

    days_per_month = INTERACTION_CONFIG['days_per_month']
    minimum_months = INTERACTION_CONFIG['minimum_fund_months']

    dated = []
    for goal in goals:
        if goal.is_completed or goal.target_cents <= 0:
            continue
        deadline = to_instant(goal.deadline)
        if deadline is None:
            logger.debug("Goal %s has no readable deadline", goal.id)
            continue
        dated.append((deadline, goal))
    dated.sort(key=lambda item: item[0])

    interactions: List[GoalInteraction] = []
    running_balance = liquid_balance_cents
    for deadline, goal in dated:
        if deadline <= reference:
            continue

        months_until = max(0.0, (deadline - reference) / pd.Timedelta(days=1) / days_per_month)
        accumulated = round_half_up(monthly_savings_cents * months_until)
        balance_after = running_balance + accumulated - goal.target_cents
        fund_months = balance_after / monthly_essentials_cents

        if fund_months < minimum_months:
            if fund_months <= 0:
                message = (f'"{goal.name}" would deplete your savings entirely. '
                           f'Consider saving more before this goal.')
            else:
                message = (f'"{goal.name}" may reduce your emergency fund to {fund_months:.1f} months. '
                           f'Rebuild before your next goal.')
            interactions.append(GoalInteraction(
                goal_id=goal.id,
                goal_name=goal.name,
                warning_message=message,
                emergency_fund_months_after=max(0, fund_months),
            ))

        running_balance = balance_after
    return interactions
