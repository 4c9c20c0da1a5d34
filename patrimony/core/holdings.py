"""Editing quantities and prices of the latest snapshot's holdings."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Callable

from zoneinfo import ZoneInfo

from ..data.repo_base import HOLDINGS_CHANGES_KEY, BaseRepository
from .codec import format_number
from .metrics import sum_values
from .models import Asset, DerivedSnapshot
from .store import SnapshotStore

LOGGER = logging.getLogger(__name__)

MAX_LISTED_CHANGES = 6


class SaveMode(str, enum.Enum):
    REPLACE = "replace"
    APPEND = "append"


@dataclass(slots=True)
class ChangeSummary:
    title: str
    lines: list[str]

    @property
    def message(self) -> str:
        return "\n".join(self.lines)


def decide_save_mode(base_date: datetime, now: datetime, tz: tzinfo | str | None = None) -> SaveMode:
    """``REPLACE`` when *base_date* and *now* share a calendar day, else ``APPEND``.

    Days are compared in *tz*, UTC when omitted.
    """

    zone = ZoneInfo(tz) if isinstance(tz, str) else (tz or timezone.utc)
    if base_date.astimezone(zone).date() == now.astimezone(zone).date():
        return SaveMode.REPLACE
    return SaveMode.APPEND


def _money(value: float, symbol: str) -> str:
    return f"{format_number(value, max_digits=2)} {symbol}".strip()


def _signed_money(value: float, symbol: str) -> str:
    return f"{'+' if value >= 0 else ''}{_money(value, symbol)}"


class HoldingsEditor:
    """Working copy of the latest snapshot's assets.

    ``update`` recomputes purchase and current value from price times
    quantity, unlike captured snapshots whose values are stored verbatim.
    """

    def __init__(
        self,
        store: SnapshotStore,
        base: DerivedSnapshot,
        *,
        currency_symbol: str = "€",
        now_fn: Callable[[], datetime] | None = None,
        tz: tzinfo | str | None = None,
    ) -> None:
        self.store = store
        self.base_id = base.id
        self.base_date = base.date
        self.original: list[Asset] = list(base.assets)
        self.edited: list[Asset] = list(base.assets)
        self.currency_symbol = currency_symbol
        self._now = now_fn or (lambda: datetime.now(timezone.utc))
        self.tz = tz

    @classmethod
    def from_store(cls, store: SnapshotStore, **kwargs) -> "HoldingsEditor | None":
        latest = store.latest()
        if latest is None:
            return None
        return cls(store, latest, **kwargs)

    # ------------------------------------------------------------------
    def update(
        self,
        index: int,
        *,
        quantity: float | None = None,
        purchase_price: float | None = None,
        current_price: float | None = None,
    ) -> Asset:
        asset = self.edited[index]
        quantity = asset.quantity if quantity is None else float(quantity)
        purchase_price = asset.purchase_price if purchase_price is None else float(purchase_price)
        current_price = asset.current_price if current_price is None else float(current_price)
        updated = asset._replace(
            quantity=quantity,
            purchase_price=purchase_price,
            current_price=current_price,
            purchase_value=purchase_price * quantity,
            current_value=current_price * quantity,
        )
        self.edited[index] = updated
        return updated

    def find(self, name: str) -> int | None:
        return next((i for i, asset in enumerate(self.edited) if asset.name == name), None)

    def changed_assets(self) -> list[str]:
        changes = []
        for before, after in zip(self.original, self.edited):
            fields = []
            if after.quantity != before.quantity:
                fields.append("quantity")
            if after.purchase_price != before.purchase_price:
                fields.append("purchase")
            if after.current_price != before.current_price:
                fields.append("price")
            if fields:
                changes.append(f"{after.name}: {', '.join(fields)}")
        return changes

    def decide_save_mode(self) -> SaveMode:
        return decide_save_mode(self.base_date, self._now(), self.tz)

    def change_summary(self, mode: SaveMode | None = None) -> ChangeSummary:
        mode = mode or self.decide_save_mode()
        before_value, before_invested = sum_values(self.original)
        after_value, after_invested = sum_values(self.edited)
        symbol = self.currency_symbol
        changed = self.changed_assets()
        lines = [
            "Snapshot updated" if mode is SaveMode.REPLACE else "New snapshot created",
            f"Total value: {_money(before_value, symbol)} -> {_money(after_value, symbol)} "
            f"({_signed_money(after_value - before_value, symbol)})",
            f"Invested: {_money(before_invested, symbol)} -> {_money(after_invested, symbol)} "
            f"({_signed_money(after_invested - before_invested, symbol)})",
            f"Assets changed: {len(changed)}",
        ]
        if changed:
            lines.append("Details:")
            lines.extend(f"- {item}" for item in changed[:MAX_LISTED_CHANGES])
            if len(changed) > MAX_LISTED_CHANGES:
                lines.append(f"- +{len(changed) - MAX_LISTED_CHANGES} more")
        return ChangeSummary("Confirm changes", lines)

    def save(self) -> tuple[SaveMode, ChangeSummary]:
        """Write the edits back and remember the summary for the next session."""

        now = self._now()
        mode = decide_save_mode(self.base_date, now, self.tz)
        summary = self.change_summary(mode)
        if mode is SaveMode.REPLACE:
            self.store.replace_latest_assets(self.edited)
        else:
            self.store.append(self.edited, now, restore_latest=self.original)
        self.store.repo.set(HOLDINGS_CHANGES_KEY, summary.message)
        LOGGER.info("Saved holdings edits (%s, %d changed)", mode.value, len(self.changed_assets()))
        return mode, summary


def pop_holdings_changes(repo: BaseRepository) -> str | None:
    """Return and forget the summary left by the last holdings save."""

    message = repo.get(HOLDINGS_CHANGES_KEY)
    if message:
        repo.remove(HOLDINGS_CHANGES_KEY)
    return message or None


__all__ = [
    "MAX_LISTED_CHANGES",
    "SaveMode",
    "ChangeSummary",
    "HoldingsEditor",
    "decide_save_mode",
    "pop_holdings_changes",
]
