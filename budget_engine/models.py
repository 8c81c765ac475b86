"""Typed input and output snapshots for the budget engine.

Every calculation takes these frozen dataclasses as input and returns new
ones.  Monetary values are integer cents throughout; instants are
timezone-aware ``pandas.Timestamp`` objects and calendar dates may also be
passed as ISO-8601 strings.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import pandas as pd

KEY_SEPARATOR = '::'


def subcategory_key(parent: str, child: str) -> str:
    """Build the stable row id for a subcategory, e.g. ``Food::Groceries``."""
    return f"{parent}{KEY_SEPARATOR}{child}"


def split_subcategory_key(key: str) -> Tuple[str, str]:
    """Return ``(parent, child)`` for a subcategory key; missing parts are ''."""
    parent, _, child = key.partition(KEY_SEPARATOR)
    return parent, child


def goal_key(goal_id: str) -> str:
    return f"goal{KEY_SEPARATOR}{goal_id}"


def asset_key(asset_id: str) -> str:
    return f"asset{KEY_SEPARATOR}{asset_id}"


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateParts:
    """Wall-clock calendar components in a timezone (month is 1-based)."""
    year: int
    month: int
    day: int


@dataclass(frozen=True)
class PeriodRange:
    """A budget period [start, end] aligned to local midnight."""
    start: pd.Timestamp
    end: pd.Timestamp
    label: str

    def contains(self, instant: pd.Timestamp) -> bool:
        return self.start <= instant <= self.end


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IncomeSource:
    amount_cents: int
    frequency: str
    owner_id: str
    source_type: str = 'recurring'  # 'recurring' or 'one-off'
    is_received: bool = False
    received_date: Optional[str] = None
    is_manual_partner_income: bool = False


@dataclass(frozen=True)
class Assignment:
    category_name: str
    assigned_cents: int
    kind: str = 'category'  # 'category', 'goal' or 'asset'
    subcategory_name: Optional[str] = None
    goal_id: Optional[str] = None
    asset_id: Optional[str] = None


@dataclass(frozen=True)
class ExpenseDefinition:
    id: str
    category_name: str
    expected_amount_cents: int
    recurrence_type: str
    inferred_subcategory: Optional[str] = None
    next_due_date: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class SplitSetting:
    split_type: str  # 'equal', 'custom', 'individual-owner', 'individual-partner'
    owner_percentage: Optional[float] = None
    category_name: Optional[str] = None
    expense_definition_id: Optional[str] = None

    @property
    def scope(self) -> str:
        if self.expense_definition_id:
            return 'expense'
        if self.category_name:
            return 'category'
        return 'default'


@dataclass(frozen=True)
class Transaction:
    id: str
    amount_cents: int  # negative for expenses
    category_id: Optional[str]
    created_at: str
    is_income: bool = False
    split_override_percentage: Optional[float] = None
    matched_expense_id: Optional[str] = None


@dataclass(frozen=True)
class ExpensePayment:
    """A transaction matched against an expense definition."""
    expense_definition_id: str
    matched_at: str


@dataclass(frozen=True)
class CategoryMapping:
    """Resolves an external (bank) category id to display names."""
    external_category_id: str
    parent_name: str
    child_name: str


@dataclass(frozen=True)
class Goal:
    id: str
    name: str
    target_cents: int = 0
    current_cents: int = 0
    is_completed: bool = False
    deadline: Optional[str] = None


@dataclass(frozen=True)
class Asset:
    id: str
    name: str
    asset_type: str = ''
    current_value_cents: int = 0


@dataclass(frozen=True)
class LayoutSection:
    """A display grouping of row ids with an optional share of income."""
    name: str
    item_ids: Tuple[str, ...] = ()
    percentage: Optional[float] = None


@dataclass(frozen=True)
class PreviousPeriod:
    """Closing totals of the period before the one being summarised."""
    income: int
    budgeted: int
    spent: int = 0
    carryover: int = 0

    @property
    def tbb(self) -> int:
        return self.income + self.carryover - self.budgeted


@dataclass(frozen=True)
class BudgetSummaryInput:
    period_type: str
    budget_view: str
    user_id: str
    owner_user_id: str
    period_range: PeriodRange
    income_sources: Tuple[IncomeSource, ...] = ()
    assignments: Tuple[Assignment, ...] = ()
    transactions: Tuple[Transaction, ...] = ()
    expense_definitions: Tuple[ExpenseDefinition, ...] = ()
    split_settings: Tuple[SplitSetting, ...] = ()
    category_mappings: Tuple[CategoryMapping, ...] = ()
    carryover_from_previous: int = 0
    # When set, carryover is derived from the previous period using carryover_mode
    previous_period: Optional[PreviousPeriod] = None
    carryover_mode: str = 'none'
    total_budget: Optional[int] = None
    layout_sections: Tuple[LayoutSection, ...] = ()
    goals: Tuple[Goal, ...] = ()
    assets: Tuple[Asset, ...] = ()
    # goal_id / asset_id -> cents contributed this period
    goal_contributions: Mapping[str, int] = field(default_factory=dict)
    asset_contributions: Mapping[str, int] = field(default_factory=dict)
    # "Parent::Child" keys from display configuration that always get a row
    layout_subcategory_keys: Tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BudgetRow:
    id: str
    kind: str  # 'subcategory', 'goal' or 'asset'
    name: str
    budgeted_cents: int
    spent_cents: int
    is_expense_default: bool = False
    parent_category: Optional[str] = None
    is_shared: Optional[bool] = None
    share_percentage: Optional[float] = None

    @property
    def available_cents(self) -> int:
        return self.budgeted_cents - self.spent_cents

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['available_cents'] = self.available_cents
        return data


@dataclass(frozen=True)
class MethodologySection:
    name: str
    percentage: float
    target_cents: int
    budgeted_cents: int
    spent_cents: int


@dataclass(frozen=True)
class BudgetSummary:
    income: int
    budgeted: int
    spent: int
    carryover: int
    tbb: int
    rows: Tuple[BudgetRow, ...]
    methodology_sections: Optional[Tuple[MethodologySection, ...]] = None

    def row(self, row_id: str) -> Optional[BudgetRow]:
        return next((r for r in self.rows if r.id == row_id), None)


@dataclass(frozen=True)
class SplitResult:
    owner_amount: int
    partner_amount: int
    owner_percentage: float
    partner_percentage: float
    is_shared: bool
    split_type: str
