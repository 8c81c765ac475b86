"""Shared-expense ownership between two partners.

A split setting may be scoped to one expense definition, to a category, or
left unscoped as the household default.  The most specific setting wins.
Percentages are always expressed from the point of view of one user, so
the owner's and partner's percentages for a setting sum to 100.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .models import SplitResult, SplitSetting
from .money import apply_percentage

logger = logging.getLogger(__name__)

FULL_SHARE = 100.0
EQUAL_SHARE = 50.0

SHARED_SPLIT_TYPES = ('equal', 'custom')


def _owner_percentage(setting: SplitSetting) -> float:
    """Owner's share of an expense under ``setting``."""
    split_type = setting.split_type
    if split_type == 'custom':
        pct = FULL_SHARE if setting.owner_percentage is None else float(setting.owner_percentage)
        return min(max(pct, 0.0), FULL_SHARE)
    if split_type == 'individual-owner':
        return FULL_SHARE
    if split_type == 'individual-partner':
        return 0.0
    if split_type != 'equal':
        logger.debug("Unknown split type %r, splitting equally", split_type)
    return EQUAL_SHARE


def resolve_percentage(setting: Optional[SplitSetting], user_id: str, owner_id: str) -> float:
    """Return the percentage of an expense that belongs to ``user_id``.

    Args:
        setting: The applicable split setting, or None when nothing is configured
        user_id: The user whose share is wanted
        owner_id: The household owner the setting's percentages refer to

    Returns:
        Share in [0, 100]; 100 when no setting applies

    Example:
        >>> s = SplitSetting('custom', owner_percentage=70)
        >>> resolve_percentage(s, 'u1', 'u1'), resolve_percentage(s, 'u2', 'u1')
        (70.0, 30.0)
    """
    if setting is None:
        return FULL_SHARE
    owner_pct = _owner_percentage(setting)
    return owner_pct if user_id == owner_id else FULL_SHARE - owner_pct


def find_split_setting(settings: Sequence[SplitSetting], expense_id: Optional[str] = None,
                       category_name: Optional[str] = None,
                       include_default: bool = True) -> Optional[SplitSetting]:
    """Pick the most specific split setting for an expense.

    Priority is expense-scoped, then category-scoped (matched on the parent
    category name), then the unscoped household default.
    """
    if expense_id:
        match = next((s for s in settings if s.expense_definition_id == expense_id), None)
        if match is not None:
            return match
    if category_name:
        match = next(
            (s for s in settings if s.scope == 'category' and s.category_name == category_name),
            None,
        )
        if match is not None:
            return match
    if include_default:
        return next((s for s in settings if s.scope == 'default'), None)
    return None


def resolve_share(settings: Sequence[SplitSetting], user_id: str, owner_id: str,
                  override_percentage: Optional[float] = None,
                  expense_id: Optional[str] = None,
                  category_name: Optional[str] = None,
                  include_default: bool = True) -> float:
    """Resolve ``user_id``'s share, honouring a per-transaction override first."""
    if override_percentage is not None:
        return min(max(float(override_percentage), 0.0), FULL_SHARE)
    setting = find_split_setting(settings, expense_id=expense_id, category_name=category_name,
                                 include_default=include_default)
    return resolve_percentage(setting, user_id, owner_id)


def calculate_split(amount_cents: int, settings: Sequence[SplitSetting],
                    expense_id: Optional[str] = None,
                    category_name: Optional[str] = None) -> SplitResult:
    """Divide an amount between the owner and the partner.

    The owner's cents are rounded half-up and the partner receives the
    remainder, so the two amounts always add back to ``amount_cents``.
    Without any applicable setting the whole amount stays with the owner.

    Example:
        >>> result = calculate_split(10000, [SplitSetting('custom', 70, category_name='Groceries')],
        ...                          category_name='Groceries')
        >>> result.owner_amount, result.partner_amount
        (7000, 3000)
    """
    setting = find_split_setting(settings, expense_id=expense_id, category_name=category_name)
    if setting is None:
        owner_pct, split_type = FULL_SHARE, 'personal'
    else:
        owner_pct, split_type = _owner_percentage(setting), setting.split_type

    owner_amount = apply_percentage(amount_cents, owner_pct)
    return SplitResult(
        owner_amount=owner_amount,
        partner_amount=amount_cents - owner_amount,
        owner_percentage=owner_pct,
        partner_percentage=FULL_SHARE - owner_pct,
        is_shared=0.0 < owner_pct < FULL_SHARE,
        split_type=split_type,
    )
