"""Income, budgeted and spent totals for a budget period.

In the ``individual`` view every figure is the viewing user's share: partner
income is left out and shared expenses are scaled by the resolved split
percentage.  The ``shared`` view reports household totals.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Dict, Iterable, Optional, Sequence, Set

import pandas as pd

from .frequency import convert_frequency
from .models import (
    Assignment,
    CategoryMapping,
    ExpenseDefinition,
    IncomeSource,
    PeriodRange,
    SplitSetting,
    Transaction,
    subcategory_key,
)
from .money import apply_percentage
from .recurrence import count_occurrences
from .splits import resolve_share
from .tz_calendar import to_instant, zone_of

logger = logging.getLogger(__name__)

INDIVIDUAL_VIEW = 'individual'


def calculate_income(sources: Sequence[IncomeSource], target_period: str, budget_view: str,
                     user_id: str, period: Optional[PeriodRange] = None) -> int:
    """Total income for the period in cents.

    Recurring sources are converted to ``target_period``.  One-off sources
    count only once received, and only when the received date falls inside
    ``period``.
    """
    total = 0
    for source in sources:
        if budget_view == INDIVIDUAL_VIEW and (
            source.owner_id != user_id or source.is_manual_partner_income
        ):
            continue

        if source.source_type == 'one-off':
            if not source.is_received or period is None:
                continue
            received = to_instant(source.received_date, zone_of(period.start))
            if received is not None and period.contains(received):
                total += source.amount_cents
            continue

        total += convert_frequency(source.amount_cents, source.frequency, target_period)
    return total


def positively_assigned_keys(assignments: Iterable[Assignment]) -> Set[str]:
    """Subcategory keys that carry a manual assignment above zero."""
    return {
        subcategory_key(a.category_name, a.subcategory_name)
        for a in assignments
        if a.kind == 'category' and a.subcategory_name and a.assigned_cents > 0
    }


def expense_default_amounts(expenses: Sequence[ExpenseDefinition], split_settings: Sequence[SplitSetting],
                            target_period: str, budget_view: str, user_id: str, owner_id: str,
                            period: Optional[PeriodRange] = None,
                            exclude_keys: Iterable[str] = ()) -> Dict[str, int]:
    """Budget implied by recurring expenses, keyed by ``Parent::Child``.

    Expenses without an inferred subcategory are ignored.  With a due date
    and a period the amount is the expected amount times the number of due
    dates in the period; otherwise it is converted from the expense's own
    recurrence.  Several expenses on one subcategory accumulate.
    """
    excluded = set(exclude_keys)
    defaults: Dict[str, int] = {}
    for expense in expenses:
        if not expense.inferred_subcategory:
            continue
        key = subcategory_key(expense.category_name, expense.inferred_subcategory)
        if key in excluded:
            continue

        if expense.next_due_date and period is not None:
            occurrences = count_occurrences(expense.next_due_date, expense.recurrence_type,
                                            period.start, period.end)
            amount = expense.expected_amount_cents * occurrences
        else:
            amount = convert_frequency(expense.expected_amount_cents, expense.recurrence_type,
                                       target_period)

        if budget_view == INDIVIDUAL_VIEW:
            share = resolve_share(split_settings, user_id, owner_id, expense_id=expense.id,
                                  category_name=expense.category_name, include_default=False)
            amount = apply_percentage(amount, share)

        defaults[key] = defaults.get(key, 0) + amount
    return defaults


def calculate_budgeted(assignments: Sequence[Assignment], expenses: Sequence[ExpenseDefinition],
                       split_settings: Sequence[SplitSetting], target_period: str, budget_view: str,
                       user_id: str, owner_id: str, period: Optional[PeriodRange] = None) -> int:
    """Total budgeted for the period: manual assignments plus expense defaults.

    Expense defaults only fill subcategories that have no positive manual
    assignment.
    """
    assigned = sum(a.assigned_cents for a in assignments if a.assigned_cents > 0)
    defaults = expense_default_amounts(
        expenses, split_settings, target_period, budget_view, user_id, owner_id,
        period=period, exclude_keys=positively_assigned_keys(assignments),
    )
    return assigned + sum(defaults.values())


def _spent_frame(transactions: Sequence[Transaction],
                 category_mappings: Sequence[CategoryMapping]) -> pd.DataFrame:
    df = pd.DataFrame([asdict(t) for t in transactions])
    lookup = {m.external_category_id: m for m in category_mappings}

    is_income = df['is_income'].fillna(False).astype(bool)
    expenses = df[(df['amount_cents'] < 0) & ~is_income].copy()
    mapped = expenses['category_id'].isin(list(lookup))
    skipped = int((~mapped).sum())
    if skipped:
        logger.debug("Ignoring %d expense transaction(s) without a mapped category", skipped)
    expenses = expenses[mapped].copy()

    expenses['parent'] = expenses['category_id'].map(lambda c: lookup[c].parent_name)
    expenses['child'] = expenses['category_id'].map(lambda c: lookup[c].child_name)
    expenses['key'] = [subcategory_key(p, c) for p, c in zip(expenses['parent'], expenses['child'])]
    expenses['abs_cents'] = expenses['amount_cents'].abs().astype('int64')
    return expenses


def calculate_spent(transactions: Sequence[Transaction], category_mappings: Sequence[CategoryMapping],
                    split_settings: Sequence[SplitSetting], budget_view: str, user_id: str,
                    owner_id: str) -> Dict[str, int]:
    """Spending per subcategory key in cents, as positive amounts.

    Income, refunds and transactions without a mapped category are ignored.
    In the individual view each transaction is scaled by its override
    percentage, else its matched expense's split, else its category's split.
    """
    if not transactions:
        return {}

    expenses = _spent_frame(transactions, category_mappings)
    if expenses.empty:
        return {}

    if budget_view == INDIVIDUAL_VIEW:
        def _personal_share(row: pd.Series) -> int:
            override = row['split_override_percentage']
            expense_id = row['matched_expense_id']
            share = resolve_share(
                split_settings, user_id, owner_id,
                override_percentage=override if pd.notna(override) else None,
                expense_id=expense_id if isinstance(expense_id, str) else None,
                category_name=row['parent'],
                include_default=False,
            )
            return apply_percentage(int(row['abs_cents']), share)

        expenses['spent_cents'] = expenses.apply(_personal_share, axis=1).astype('int64')
    else:
        expenses['spent_cents'] = expenses['abs_cents']

    totals = expenses.groupby('key', sort=False)['spent_cents'].sum()
    return {key: int(value) for key, value in totals.items()}
