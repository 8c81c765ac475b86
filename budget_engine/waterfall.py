"""Build budget rows with a strict-precedence waterfall.

Each layer proposes rows for one source of budget information.  A layer only
writes keys that no earlier layer has claimed, so the order of
``WATERFALL_LAYERS`` is the precedence order:

    1. manual subcategory assignments above zero
    2. zero assignments (seeded from the expense default when one exists)
    3. goal assignments
    4. asset assignments
    5. remaining goals
    6. remaining assets
    7. remaining expense defaults
    8. unplanned spending
    9. layout placeholders
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .models import (
    Asset,
    Assignment,
    BudgetRow,
    Goal,
    SplitSetting,
    asset_key,
    goal_key,
    split_subcategory_key,
    subcategory_key,
)
from .splits import SHARED_SPLIT_TYPES, find_split_setting, resolve_percentage

Rows = Dict[str, BudgetRow]


@dataclass(frozen=True)
class RowContext:
    """Everything the layers read.  Nothing in it is modified."""
    assignments: Sequence[Assignment] = ()
    expense_defaults: Mapping[str, int] = field(default_factory=dict)
    spent: Mapping[str, int] = field(default_factory=dict)
    goals: Sequence[Goal] = ()
    assets: Sequence[Asset] = ()
    goal_contributions: Mapping[str, int] = field(default_factory=dict)
    asset_contributions: Mapping[str, int] = field(default_factory=dict)
    layout_keys: Sequence[str] = ()
    split_settings: Sequence[SplitSetting] = ()
    user_id: Optional[str] = None
    owner_id: Optional[str] = None
    # id -> display name, filled by with_name_lookups
    goal_names: Mapping[str, str] = field(default_factory=dict)
    asset_names: Mapping[str, str] = field(default_factory=dict)


def with_name_lookups(ctx: RowContext) -> RowContext:
    """Return ``ctx`` with goal and asset display names indexed by id."""
    return replace(
        ctx,
        goal_names={g.id: g.name for g in ctx.goals},
        asset_names={a.id: a.name for a in ctx.assets},
    )


Layer = Callable[[Rows, RowContext], Rows]


def _claim(rows: Rows, row: BudgetRow) -> None:
    if row.id not in rows:
        rows[row.id] = row


def _subcategory_row(key: str, budgeted: int, ctx: RowContext, is_expense_default: bool = False) -> BudgetRow:
    parent, child = split_subcategory_key(key)
    return BudgetRow(
        id=key,
        kind='subcategory',
        name=child,
        parent_category=parent,
        budgeted_cents=budgeted,
        spent_cents=ctx.spent.get(key, 0),
        is_expense_default=is_expense_default,
    )


def _category_assignments(ctx: RowContext) -> List[Tuple[str, Assignment]]:
    return [
        (subcategory_key(a.category_name, a.subcategory_name), a)
        for a in ctx.assignments
        if a.kind == 'category' and a.subcategory_name
    ]


def layer_manual_assignments(rows: Rows, ctx: RowContext) -> Rows:
    rows = dict(rows)
    for key, assignment in _category_assignments(ctx):
        if assignment.assigned_cents > 0:
            _claim(rows, _subcategory_row(key, assignment.assigned_cents, ctx))
    return rows


def layer_seeded_assignments(rows: Rows, ctx: RowContext) -> Rows:
    """Zero assignments take the expense default if there is one, else stay at zero."""
    rows = dict(rows)
    for key, assignment in _category_assignments(ctx):
        if assignment.assigned_cents != 0:
            continue
        if key in ctx.expense_defaults:
            _claim(rows, _subcategory_row(key, ctx.expense_defaults[key], ctx, is_expense_default=True))
        else:
            _claim(rows, _subcategory_row(key, 0, ctx))
    return rows


def _goal_row(goal_id: str, budgeted: int, ctx: RowContext) -> BudgetRow:
    return BudgetRow(
        id=goal_key(goal_id),
        kind='goal',
        name=ctx.goal_names.get(goal_id, goal_id),
        budgeted_cents=budgeted,
        spent_cents=ctx.goal_contributions.get(goal_id, 0),
    )


def _asset_row(asset_id: str, budgeted: int, ctx: RowContext) -> BudgetRow:
    return BudgetRow(
        id=asset_key(asset_id),
        kind='asset',
        name=ctx.asset_names.get(asset_id, asset_id),
        budgeted_cents=budgeted,
        spent_cents=ctx.asset_contributions.get(asset_id, 0),
    )


def layer_goal_assignments(rows: Rows, ctx: RowContext) -> Rows:
    rows = dict(rows)
    for assignment in ctx.assignments:
        if assignment.kind == 'goal' and assignment.goal_id:
            _claim(rows, _goal_row(assignment.goal_id, assignment.assigned_cents, ctx))
    return rows


def layer_asset_assignments(rows: Rows, ctx: RowContext) -> Rows:
    rows = dict(rows)
    for assignment in ctx.assignments:
        if assignment.kind == 'asset' and assignment.asset_id:
            _claim(rows, _asset_row(assignment.asset_id, assignment.assigned_cents, ctx))
    return rows


def layer_default_goals(rows: Rows, ctx: RowContext) -> Rows:
    rows = dict(rows)
    for goal in ctx.goals:
        _claim(rows, _goal_row(goal.id, 0, ctx))
    return rows


def layer_default_assets(rows: Rows, ctx: RowContext) -> Rows:
    rows = dict(rows)
    for asset in ctx.assets:
        _claim(rows, _asset_row(asset.id, 0, ctx))
    return rows


def layer_expense_defaults(rows: Rows, ctx: RowContext) -> Rows:
    rows = dict(rows)
    for key, amount in ctx.expense_defaults.items():
        _claim(rows, _subcategory_row(key, amount, ctx, is_expense_default=True))
    return rows


def layer_unplanned_spending(rows: Rows, ctx: RowContext) -> Rows:
    rows = dict(rows)
    for key in ctx.spent:
        _claim(rows, _subcategory_row(key, 0, ctx))
    return rows


def layer_layout_placeholders(rows: Rows, ctx: RowContext) -> Rows:
    rows = dict(rows)
    for key in ctx.layout_keys:
        parent, child = split_subcategory_key(key)
        if parent and child:
            _claim(rows, _subcategory_row(key, 0, ctx))
    return rows


WATERFALL_LAYERS: Tuple[Layer, ...] = (
    layer_manual_assignments,
    layer_seeded_assignments,
    layer_goal_assignments,
    layer_asset_assignments,
    layer_default_goals,
    layer_default_assets,
    layer_expense_defaults,
    layer_unplanned_spending,
    layer_layout_placeholders,
)


def run_layers(layers: Sequence[Layer], ctx: RowContext, rows: Optional[Rows] = None) -> Rows:
    """Apply ``layers`` in order, starting from ``rows`` (empty by default)."""
    ctx = with_name_lookups(ctx)
    result: Rows = dict(rows or {})
    for layer in layers:
        result = layer(result, ctx)
    return result


def annotate_shares(rows: Sequence[BudgetRow], ctx: RowContext) -> List[BudgetRow]:
    """Mark subcategory rows whose parent category has a shared split."""
    if not ctx.split_settings or ctx.user_id is None or ctx.owner_id is None:
        return list(rows)

    annotated = []
    for row in rows:
        setting = None
        if row.kind == 'subcategory':
            setting = find_split_setting(ctx.split_settings, category_name=row.parent_category,
                                         include_default=False)
        if setting is not None and setting.split_type in SHARED_SPLIT_TYPES:
            row = replace(
                row,
                is_shared=True,
                share_percentage=resolve_percentage(setting, ctx.user_id, ctx.owner_id),
            )
        annotated.append(row)
    return annotated


def build_rows(ctx: RowContext) -> List[BudgetRow]:
    """Run the full waterfall and return rows in the order they were claimed."""
    rows = run_layers(WATERFALL_LAYERS, ctx)
    return annotate_shares(list(rows.values()), ctx)
