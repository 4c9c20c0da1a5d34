"""Target allocations per category and asset, and the monthly auto-balancer."""
from __future__ import annotations

import json
import logging
import math
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..data.repo_base import TARGETS_KEY, TARGETS_META_KEY, BaseRepository
from ..notify import ERROR, SUCCESS, LoggingNotifier, Notifier
from .metrics import category_assets
from .models import CategoryTarget, DerivedSnapshot, TargetsMeta

if TYPE_CHECKING:  # pragma: no cover
    from ..sync.service import SyncService

LOGGER = logging.getLogger(__name__)

ADJUST_FACTOR = 0.6
MIN_FLOOR_RATIO = 0.25


def _clamp(value: float, low: float, high: float = math.inf) -> float:
    number = float(value) if isinstance(value, (int, float)) and math.isfinite(value) else 0.0
    return max(low, min(high, number))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def base_monthly_allocation(target: float, sum_targets: float, budget: float) -> float:
    """Share of *budget* proportional to *target* among all targets."""

    if not budget or not sum_targets:
        return 0.0
    return max(target, 0.0) / sum_targets * budget


def targets_indicator(rows: Iterable[Mapping[str, Any]]) -> dict[str, float]:
    total = sum(float(row["target"]) for row in rows)
    return {"sum_targets": total, "delta_to_100": 100 - total}


class TargetsBook:
    """Category targets and the monthly budget, persisted through the repository."""

    def __init__(
        self,
        repo: BaseRepository,
        *,
        notifier: Notifier | None = None,
        sync: "SyncService | None" = None,
    ) -> None:
        self.repo = repo
        self.notifier = notifier or LoggingNotifier()
        self.sync = sync
        self.targets: dict[str, CategoryTarget] = {}
        self.meta = TargetsMeta()

    # ------------------------------------------------------------------
    def _read_json(self, key: str) -> dict[str, Any] | None:
        stored = self.repo.get(key)
        if not stored:
            return None
        try:
            data = json.loads(stored)
            if not isinstance(data, dict):
                raise ValueError(f"{key} is not an object")
        except ValueError as exc:
            LOGGER.warning("Discarding corrupt %s: %s", key, exc)
            self.repo.remove(key)
            self.notifier.notify("Stored targets were corrupt and have been reset.", ERROR)
            return None
        return data

    def load(self) -> "TargetsBook":
        self.targets = {}
        raw_targets = self._read_json(TARGETS_KEY) or {}
        for name, raw in raw_targets.items():
            if isinstance(raw, dict):
                self.targets[str(name)] = CategoryTarget.from_raw(raw)
        raw_meta = self._read_json(TARGETS_META_KEY)
        self.meta = TargetsMeta.from_raw(raw_meta) if raw_meta else TargetsMeta()
        return self

    def save(self) -> None:
        self.repo.set(TARGETS_KEY, json.dumps({name: t.to_raw() for name, t in self.targets.items()}))
        self._pushed()

    def save_meta(self) -> None:
        self.repo.set(TARGETS_META_KEY, json.dumps(self.meta.to_raw()))
        self._pushed()

    def _pushed(self) -> None:
        if self.sync is not None:
            self.sync.push_async()

    def get(self, category: str) -> CategoryTarget:
        return self.targets.get(category) or CategoryTarget()

    def _entry(self, category: str) -> CategoryTarget:
        return self.targets.setdefault(category, CategoryTarget())

    # --- setters -------------------------------------------------------
    def set_target(self, category: str, value: float) -> float:
        entry = self._entry(category)
        entry.target = _clamp(value, 0.0, 100.0)
        self.save()
        return entry.target

    def set_monthly(self, category: str, value: float) -> float:
        entry = self._entry(category)
        entry.monthly = _clamp(value, 0.0)
        self.save()
        return entry.monthly

    def set_asset_target(self, category: str, asset: str, value: float) -> float:
        entry = self._entry(category)
        entry.assets[asset] = _clamp(value, 0.0, 100.0)
        self.save()
        return entry.assets[asset]

    def set_monthly_budget(self, value: float) -> float:
        self.meta.monthly_budget = _clamp(value, 0.0)
        self.save_meta()
        return self.meta.monthly_budget

    # --- tables --------------------------------------------------------
    def category_rows(self, latest: DerivedSnapshot | None) -> list[dict[str, Any]]:
        """Per-category comparison of current weight, target and planned contributions.

        ``impact`` is the change in absolute gap (percentage points) once the
        planned monthly amounts are added; positive means the gap narrows.
        """

        if latest is None:
            return []
        categories = list(latest.category_totals)
        total_value = sum(latest.category_totals.get(c, 0.0) for c in categories)
        sum_targets = sum(self.get(c).target for c in categories) or 1.0
        total_monthly = sum(self.get(c).monthly for c in categories)
        projected_total = total_value + total_monthly

        rows = []
        for name in categories:
            entry = self.get(name)
            current_value = latest.category_totals.get(name, 0.0)
            current_pct = current_value / total_value * 100 if total_value > 0 else 0.0
            projected_pct = (
                (current_value + entry.monthly) / projected_total * 100 if projected_total > 0 else current_pct
            )
            diff = entry.target - current_pct
            rows.append(
                {
                    "name": name,
                    "current_pct": current_pct,
                    "target": entry.target,
                    "diff": diff,
                    "monthly": entry.monthly,
                    "base_monthly": base_monthly_allocation(entry.target, sum_targets, self.meta.monthly_budget),
                    "impact": abs(diff) - abs(entry.target - projected_pct),
                }
            )
        rows.sort(key=lambda row: (-row["current_pct"], row["name"]))
        return rows

    def asset_rows(self, latest: DerivedSnapshot | None, category: str) -> list[dict[str, Any]]:
        if latest is None:
            return []
        assets = category_assets(latest, category)
        total_value = sum(asset.current_value for asset in assets) or 1.0
        asset_targets = self.get(category).assets
        rows = []
        for asset in assets:
            current_pct = (asset.current_value or 0.0) / total_value * 100
            target = asset_targets.get(asset.name, 0.0)
            rows.append(
                {
                    "name": asset.name,
                    "current_pct": current_pct,
                    "target": target,
                    "diff": target - current_pct,
                }
            )
        rows.sort(key=lambda row: (-abs(row["diff"]), row["name"]))
        return rows

    def monthly_total(self, latest: DerivedSnapshot | None) -> float:
        if latest is None:
            return 0.0
        return sum(self.get(name).monthly for name in latest.category_totals)

    # --- auto-balance --------------------------------------------------
    def auto_balance(self, latest: DerivedSnapshot | None) -> dict[str, int]:
        """Split the monthly budget across categories, favouring underweight ones.

        Returns the whole-unit allocation per category, or an empty mapping
        when there is no budget or no portfolio value to balance against.
        """

        if latest is None:
            return {}
        categories = list(latest.category_totals)
        total_value = sum(latest.category_totals.get(c, 0.0) for c in categories)
        budget = self.meta.monthly_budget or 0.0
        if budget <= 0 or total_value <= 0:
            return {}

        weights: dict[str, float] = {}
        for name in categories:
            current_pct = latest.category_totals.get(name, 0.0) / total_value * 100
            target = self.get(name).target
            base = max(target, 0.0)
            adjusted = base + ADJUST_FACTOR * (target - current_pct)
            weights[name] = max(adjusted, base * MIN_FLOOR_RATIO)
        total_weight = sum(weights.values()) or 1.0

        allocation: dict[str, int] = {}
        for name, weight in weights.items():
            share = weight / total_weight * budget
            allocation[name] = _round_half_up(share) if math.isfinite(share) else 0
            self._entry(name).monthly = float(allocation[name])
        self.save()
        self.notifier.notify("Monthly contributions balanced", SUCCESS)
        return allocation


__all__ = [
    "ADJUST_FACTOR",
    "MIN_FLOOR_RATIO",
    "TargetsBook",
    "base_monthly_allocation",
    "targets_indicator",
]
