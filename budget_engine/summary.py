"""Assemble the complete budget summary for one period."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Tuple

from .aggregators import (
    calculate_budgeted,
    calculate_income,
    calculate_spent,
    expense_default_amounts,
    positively_assigned_keys,
)
from .carryover import calculate_carryover, to_be_budgeted
from .models import BudgetRow, BudgetSummary, BudgetSummaryInput, LayoutSection, MethodologySection
from .money import apply_percentage
from .waterfall import RowContext, build_rows

logger = logging.getLogger(__name__)


def methodology_sections(sections: Sequence[LayoutSection], rows: Sequence[BudgetRow],
                         income: int) -> Optional[Tuple[MethodologySection, ...]]:
    """Per-section target, budgeted and spent for the household's layout.

    Every section is reported; one without a percentage has a 0% target.
    Returns None when there is no layout.  A section's target is its
    percentage of income, rounded half-up.
    """
    if not sections:
        return None
    by_id: Dict[str, BudgetRow] = {row.id: row for row in rows}
    result = []
    for section in sections:
        pct = section.percentage if section.percentage is not None else 0
        members = [by_id[item_id] for item_id in section.item_ids if item_id in by_id]
        result.append(MethodologySection(
            name=section.name,
            percentage=pct,
            target_cents=apply_percentage(income, pct),
            budgeted_cents=sum(r.budgeted_cents for r in members),
            spent_cents=sum(r.spent_cents for r in members),
        ))
    return tuple(result)


def calculate_budget_summary(data: BudgetSummaryInput) -> BudgetSummary:
    """Reconcile income, assignments, expense defaults and spending for a period.

    Args:
        data: Fully materialised snapshot of the period

    Returns:
        BudgetSummary with totals, to-be-budgeted and one row per budget line

    Example:
        >>> summary = calculate_budget_summary(snapshot)
        >>> summary.tbb == summary.income + summary.carryover - summary.budgeted
        True
    """
    period = data.period_range

    if data.total_budget is not None:
        income = data.total_budget
    else:
        income = calculate_income(data.income_sources, data.period_type, data.budget_view,
                                  data.user_id, period)

    budgeted = calculate_budgeted(
        data.assignments, data.expense_definitions, data.split_settings, data.period_type,
        data.budget_view, data.user_id, data.owner_user_id, period,
    )

    spent_by_key = calculate_spent(
        data.transactions, data.category_mappings, data.split_settings, data.budget_view,
        data.user_id, data.owner_user_id,
    )
    spent = (
        sum(spent_by_key.values())
        + sum(data.goal_contributions.values())
        + sum(data.asset_contributions.values())
    )

    if data.previous_period is not None:
        carryover = calculate_carryover(data.previous_period, data.carryover_mode)
    else:
        carryover = data.carryover_from_previous

    defaults = expense_default_amounts(
        data.expense_definitions, data.split_settings, data.period_type, data.budget_view,
        data.user_id, data.owner_user_id, period=period,
        exclude_keys=positively_assigned_keys(data.assignments),
    )
    rows = build_rows(RowContext(
        assignments=data.assignments,
        expense_defaults=defaults,
        spent=spent_by_key,
        goals=data.goals,
        assets=data.assets,
        goal_contributions=data.goal_contributions,
        asset_contributions=data.asset_contributions,
        layout_keys=data.layout_subcategory_keys,
        split_settings=data.split_settings,
        user_id=data.user_id,
        owner_id=data.owner_user_id,
    ))

    logger.debug("Summarised %s with %d rows", period.label, len(rows))
    return BudgetSummary(
        income=income,
        budgeted=budgeted,
        spent=spent,
        carryover=carryover,
        tbb=to_be_budgeted(income, carryover, budgeted),
        rows=tuple(rows),
        methodology_sections=methodology_sections(data.layout_sections, rows, income),
    )
