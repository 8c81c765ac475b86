"""Read period snapshots from JSON files and write summaries back out.

A snapshot file holds everything ``calculate_budget_summary`` needs: the
period (as a reference date, period type and timezone) plus lists of income
sources, assignments, transactions and so on, each entry using the field
names of the matching dataclass in ``budget_engine.models``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from .config import BUDGET_VIEWS, DEFAULT_BUDGET_TIMEZONE, DEFAULT_CARRYOVER_MODE, PERIOD_TYPES, SNAPSHOT_DIR
from .models import (
    Asset,
    Assignment,
    BudgetSummary,
    BudgetSummaryInput,
    CategoryMapping,
    ExpenseDefinition,
    Goal,
    IncomeSource,
    LayoutSection,
    PreviousPeriod,
    SplitSetting,
    Transaction,
)
from .periods import period_range

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Snapshot key -> dataclass for each list of records
RECORD_TYPES: Dict[str, type] = {
    'income_sources': IncomeSource,
    'assignments': Assignment,
    'transactions': Transaction,
    'expense_definitions': ExpenseDefinition,
    'split_settings': SplitSetting,
    'category_mappings': CategoryMapping,
    'goals': Goal,
    'assets': Asset,
}

REQUIRED_KEYS = ('period_type', 'budget_view', 'user_id', 'reference_date')


def _build_records(key: str, cls: Type[T], items: Any) -> tuple:
    if items is None:
        return ()
    if not isinstance(items, list):
        raise ValueError(f"Snapshot field '{key}' must be a list")
    known = {f.name for f in fields(cls)}
    records: List[T] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"Snapshot field '{key}[{index}]' must be an object")
        unknown = set(item) - known
        if unknown:
            logger.debug("Ignoring unknown keys %s in %s[%d]", sorted(unknown), key, index)
        try:
            records.append(cls(**{k: v for k, v in item.items() if k in known}))
        except TypeError as exc:
            raise ValueError(f"Invalid entry '{key}[{index}]': {exc}") from exc
    return tuple(records)


def snapshot_from_dict(data: Dict[str, Any]) -> BudgetSummaryInput:
    """Build a ``BudgetSummaryInput`` from a decoded snapshot document.

    Raises:
        ValueError: If required keys are missing, the period type or view is
            unknown, or a record is malformed
    """
    missing = [key for key in REQUIRED_KEYS if key not in data]
    if missing:
        raise ValueError(f"Snapshot is missing required keys: {', '.join(missing)}")

    tz = data.get('timezone') or DEFAULT_BUDGET_TIMEZONE
    period_type = data['period_type']
    if period_type not in PERIOD_TYPES:
        raise ValueError(f"Unknown period_type {period_type!r}; expected one of {', '.join(PERIOD_TYPES)}")
    if data['budget_view'] not in BUDGET_VIEWS:
        raise ValueError(f"Unknown budget_view {data['budget_view']!r}; expected one of {', '.join(BUDGET_VIEWS)}")
    records = {key: _build_records(key, cls, data.get(key)) for key, cls in RECORD_TYPES.items()}

    try:
        layout_sections = tuple(
            LayoutSection(
                name=section['name'],
                item_ids=tuple(section.get('item_ids') or ()),
                percentage=section.get('percentage'),
            )
            for section in data.get('layout_sections') or []
        )
        previous = data.get('previous_period')
        previous_period = PreviousPeriod(**previous) if previous else None
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Invalid layout or previous period in snapshot: {exc}") from exc

    return BudgetSummaryInput(
        period_type=period_type,
        budget_view=data['budget_view'],
        user_id=data['user_id'],
        owner_user_id=data.get('owner_user_id') or data['user_id'],
        period_range=period_range(data['reference_date'], period_type, tz),
        carryover_from_previous=int(data.get('carryover_from_previous') or 0),
        previous_period=previous_period,
        carryover_mode=data.get('carryover_mode') or DEFAULT_CARRYOVER_MODE,
        total_budget=data.get('total_budget'),
        layout_sections=layout_sections,
        goal_contributions=dict(data.get('goal_contributions') or {}),
        asset_contributions=dict(data.get('asset_contributions') or {}),
        layout_subcategory_keys=tuple(data.get('layout_subcategory_keys') or ()),
        **records,
    )


def load_snapshot(path: Path | str) -> BudgetSummaryInput:
    """Load a snapshot file.

    Relative paths are resolved against ``SNAPSHOT_DIR`` when they do not
    exist as given.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or not a valid snapshot
    """
    target = Path(path)
    if not target.exists() and not target.is_absolute():
        target = SNAPSHOT_DIR / target
    if not target.exists():
        raise FileNotFoundError(f"Snapshot file not found: {target}")

    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Snapshot {target} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Snapshot {target} must contain a JSON object")
    return snapshot_from_dict(data)


def summary_to_dict(summary: BudgetSummary) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        'income': summary.income,
        'budgeted': summary.budgeted,
        'spent': summary.spent,
        'carryover': summary.carryover,
        'tbb': summary.tbb,
        'rows': [row.as_dict() for row in summary.rows],
    }
    if summary.methodology_sections is not None:
        payload['methodology_sections'] = [asdict(s) for s in summary.methodology_sections]
    return payload


def save_summary(summary: BudgetSummary, path: Path, label: Optional[str] = None) -> None:
    """Write a summary as JSON, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = summary_to_dict(summary)
    if label:
        payload['label'] = label
    with path.open('w', encoding='utf-8') as handle:
        json.dump(payload, handle, indent=2, sort_keys=True)
