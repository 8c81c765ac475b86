"""Thresholds for health scoring and recommendations.

The values live in ``health.json`` beside this module, one object per
metric.  Scoring modules read the sections they need once, at import time.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

THRESHOLDS_FILE = Path(__file__).parent / 'health.json'


def load_thresholds(path: Path = THRESHOLDS_FILE) -> Dict[str, Dict[str, Any]]:
    """Read a threshold document.

    Args:
        path: JSON file holding an object of per-metric sections

    Returns:
        Mapping of section name to its threshold values

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: If the file is not valid JSON or a section is not an object
    """
    if not path.exists():
        raise FileNotFoundError(f"Threshold file not found: {path}")

    try:
        with path.open('r', encoding='utf-8') as handle:
            document = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Threshold file {path} is not valid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise ValueError(f"Threshold file {path} must contain a JSON object")
    bad = sorted(name for name, section in document.items() if not isinstance(section, dict))
    if bad:
        raise ValueError(f"Threshold sections must be objects: {', '.join(bad)}")
    return document


def threshold_section(section: str, path: Path = THRESHOLDS_FILE) -> Dict[str, Any]:
    """Return the thresholds for one metric.

    Example:
        >>> threshold_section('emergency_fund')['good_months']
        6
    """
    thresholds = load_thresholds(path)
    if section not in thresholds:
        raise ValueError(f"No '{section}' section in {path}")
    return thresholds[section]
