#!/usr/bin/env python3
"""Print the budget summary for a period snapshot file."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from budget_engine.money import format_currency
from budget_engine.snapshot_storage import load_snapshot, save_summary
from budget_engine.summary import calculate_budget_summary

logger = logging.getLogger(__name__)


def _rows_frame(summary) -> pd.DataFrame:
    df = pd.DataFrame([row.as_dict() for row in summary.rows])
    if df.empty:
        return df
    columns = ['id', 'kind', 'budgeted_cents', 'spent_cents', 'available_cents', 'is_expense_default']
    df = df[columns].copy()
    for column in ('budgeted_cents', 'spent_cents', 'available_cents'):
        df[column] = df[column].map(format_currency)
    return df.rename(columns={
        'budgeted_cents': 'Budgeted',
        'spent_cents': 'Spent',
        'available_cents': 'Available',
        'is_expense_default': 'Default',
    })


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('snapshot', help='Snapshot JSON file (relative paths also searched in the snapshot dir)')
    parser.add_argument('--output', type=Path, help='Write the summary as JSON to this path')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        snapshot = load_snapshot(args.snapshot)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Could not load snapshot: {exc}", file=sys.stderr)
        return 1

    summary = calculate_budget_summary(snapshot)

    print(snapshot.period_range.label)
    print(f"  Income:          {format_currency(summary.income)}")
    print(f"  Carryover:       {format_currency(summary.carryover)}")
    print(f"  Budgeted:        {format_currency(summary.budgeted)}")
    print(f"  Spent:           {format_currency(summary.spent)}")
    print(f"  To be budgeted:  {format_currency(summary.tbb)}")
    print()

    rows = _rows_frame(summary)
    if rows.empty:
        print("No budget rows.")
    else:
        print(rows.to_string(index=False))

    if args.output:
        save_summary(summary, args.output, label=snapshot.period_range.label)
        logger.info("Wrote summary to %s", args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
