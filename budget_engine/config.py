"""Configuration management for the budget engine.

This module centralizes configuration values including the default budget
timezone, the carryover policy and the snapshot directory, with
environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in budget_engine/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Period boundaries align to midnight in this zone unless a caller passes one
DEFAULT_BUDGET_TIMEZONE = os.getenv("BUDGET_ENGINE_TIMEZONE", "Australia/Sydney")

# Rollover policy used when a caller does not name one
DEFAULT_CARRYOVER_MODE = os.getenv("BUDGET_ENGINE_CARRYOVER_MODE", "none")

# Values a snapshot may name
PERIOD_TYPES = ("weekly", "fortnightly", "monthly")
BUDGET_VIEWS = ("individual", "shared")

# Snapshot files for the command-line report
SNAPSHOT_DIR = Path(
    os.getenv("BUDGET_ENGINE_SNAPSHOT_DIR", _PROJECT_ROOT / "data" / "snapshots")
).resolve()
