"""Queries over lists of model assets (span, lookup, classification)."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from .date_int import DateInt
from .exceptions import ValidationError
from .instrument import EXPENSABLE_PRIORITY
from .model_asset import ModelAsset

__all__ = [
    "first_date_int",
    "last_date_int",
    "build_arena",
    "find_by_name",
    "first_expensable_account",
    "sort_model_assets",
]


def first_date_int(assets: Iterable[ModelAsset]) -> Optional[DateInt]:
    """Earliest start month, or None for no assets."""
    starts = [a.start_date_int for a in assets]
    return min(starts).copy() if starts else None


def last_date_int(assets: Iterable[ModelAsset]) -> Optional[DateInt]:
    """Latest finish month, or None for no assets."""
    finishes = [a.finish_date_int for a in assets]
    return max(finishes).copy() if finishes else None


def build_arena(assets: Iterable[ModelAsset]) -> Dict[str, ModelAsset]:
    """Index assets by display name; duplicates are rejected."""
    arena: Dict[str, ModelAsset] = {}
    for asset in assets:
        if asset.display_name in arena:
            raise ValidationError(
                f"Duplicate display name {asset.display_name!r}; "
                f"fund transfers bind by display name so names must be unique"
            )
        arena[asset.display_name] = asset
    return arena


def find_by_name(assets: Iterable[ModelAsset], display_name: str) -> Optional[ModelAsset]:
    return next((a for a in assets if a.display_name == display_name), None)


def first_expensable_account(
    assets: Sequence[ModelAsset],
    date: Optional[DateInt] = None,
    exclude: Optional[ModelAsset] = None,
) -> Optional[ModelAsset]:
    """
    Account that absorbs implicit debits and credits.

    Walks EXPENSABLE_PRIORITY (cash, bank, taxable, 401K, IRA, Roth) and
    returns the first open asset of that kind, active in *date* when given.
    """
    for kind in EXPENSABLE_PRIORITY:
        for asset in assets:
            if asset.instrument is not kind or asset is exclude or asset.is_closed:
                continue
            if date is not None and not asset.in_month(date):
                continue
            return asset
    return None


def sort_model_assets(assets: Iterable[ModelAsset]) -> List[ModelAsset]:
    """Order by instrument sort order, then display name."""
    return sorted(assets, key=lambda a: (a.instrument.sort_order, a.display_name))
