"""Aggregate metrics derived from a snapshot's asset list."""
from __future__ import annotations

import re
from typing import Iterable

from .models import Asset, DerivedSnapshot, Snapshot

_SPACES = re.compile(r"\s+")


def compute_snapshot_metrics(snapshot: Snapshot) -> DerivedSnapshot:
    """Sum values and group them by category and term in a single pass.

    Category and term labels are grouping keys compared exactly.
    """

    total_current = 0.0
    total_purchase = 0.0
    category_totals: dict[str, float] = {}
    category_invested: dict[str, float] = {}
    term_totals: dict[str, float] = {}
    for asset in snapshot.assets:
        total_current += asset.current_value
        total_purchase += asset.purchase_value
        category_totals[asset.category] = category_totals.get(asset.category, 0.0) + asset.current_value
        category_invested[asset.category] = (
            category_invested.get(asset.category, 0.0) + asset.purchase_value
        )
        term_totals[asset.term] = term_totals.get(asset.term, 0.0) + asset.current_value

    return DerivedSnapshot(
        id=snapshot.id,
        date=snapshot.date,
        assets=list(snapshot.assets),
        tag=snapshot.tag or "",
        note=snapshot.note or "",
        total_current_value=total_current,
        total_purchase_value=total_purchase,
        variation=total_current - total_purchase,
        category_totals=category_totals,
        category_invested=category_invested,
        term_totals=term_totals,
    )


def category_assets(snapshot: Snapshot, category: str) -> list[Asset]:
    return [asset for asset in snapshot.assets if asset.category == category]


def sum_values(assets: Iterable[Asset]) -> tuple[float, float]:
    """Return ``(current value, purchase value)`` for *assets*."""

    value = 0.0
    invested = 0.0
    for asset in assets:
        value += asset.current_value
        invested += asset.purchase_value
    return value, invested


def category_values(snapshot: Snapshot, category: str) -> tuple[float, float]:
    return sum_values(category_assets(snapshot, category))


def snapshot_values(snapshot: DerivedSnapshot, category: str | None = None) -> tuple[float, float]:
    """Value and invested amount for the whole portfolio or one category."""

    if category:
        return category_values(snapshot, category)
    return snapshot.total_current_value, snapshot.total_purchase_value


def roi_ratio(value: float, invested: float) -> float:
    if invested <= 0:
        return 0.0
    return (value - invested) / invested


def roi_pct(value: float, invested: float) -> float:
    return roi_ratio(value, invested) * 100


def normalize_key(value: object) -> str:
    """Identity key used to match items across snapshots."""

    return _SPACES.sub(" ", str(value or "").strip().lower())


__all__ = [
    "compute_snapshot_metrics",
    "category_assets",
    "sum_values",
    "category_values",
    "snapshot_values",
    "roi_ratio",
    "roi_pct",
    "normalize_key",
]
