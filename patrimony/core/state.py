"""Explicit application state shared by the CLI and the analytics functions."""
from __future__ import annotations

from dataclasses import dataclass

from ..data.repo_base import SELECTED_CATEGORY_KEY
from .models import DerivedSnapshot
from .ranges import DEFAULT_TIMEZONE, RANGE_MONTHS, monthly_for_range, select_range
from .store import SnapshotStore
from .targets import TargetsBook


@dataclass
class AppState:
    store: SnapshotStore
    targets: TargetsBook
    selected_category: str | None = None
    range_token: str = "all"
    timezone: str = DEFAULT_TIMEZONE
    opportunity_range_months: int = 6
    composition_compare_months: int = 1

    # ------------------------------------------------------------------
    @property
    def snapshots(self) -> list[DerivedSnapshot]:
        return self.store.snapshots

    @property
    def latest(self) -> DerivedSnapshot | None:
        return self.store.latest()

    def load(self) -> "AppState":
        """Load snapshots, targets and the remembered category selection."""

        self.store.load()
        self.targets.load()
        self.selected_category = None
        remembered = self.store.repo.get(SELECTED_CATEGORY_KEY)
        if remembered and remembered in self.categories():
            self.selected_category = remembered
        return self

    def categories(self) -> list[str]:
        latest = self.latest
        return sorted(latest.category_totals) if latest is not None else []

    def select_category(self, category: str | None) -> bool:
        """Select a category of the latest snapshot, or clear the selection.

        Unknown categories clear the selection and return ``False``.
        """

        repo = self.store.repo
        if category and category in self.categories():
            self.selected_category = category
            repo.set(SELECTED_CATEGORY_KEY, category)
            return True
        self.selected_category = None
        repo.remove(SELECTED_CATEGORY_KEY)
        return not category

    def set_range(self, token: str) -> None:
        if token not in RANGE_MONTHS:
            raise ValueError(f"Unsupported range token: {token!r}")
        self.range_token = token

    # ------------------------------------------------------------------
    def range_snapshots(self) -> list[DerivedSnapshot]:
        return select_range(self.snapshots, self.range_token, self.timezone)

    def monthly_snapshots(self) -> list[DerivedSnapshot]:
        return monthly_for_range(self.snapshots, self.range_token, self.timezone)


__all__ = ["AppState"]
