"""Domain models for the snapshot tracker."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import NamedTuple


class Asset(NamedTuple):
    """A single holding captured inside a snapshot.

    The field order is positional and mirrors the persisted 8-element array.
    ``purchase_value`` and ``current_value`` are stored as captured and are not
    recomputed from price and quantity.
    """

    name: str
    term: str
    category: str
    purchase_price: float
    quantity: float
    current_price: float
    purchase_value: float
    current_value: float


LEGACY_ASSET_KEYS = (
    "name",
    "term",
    "category",
    "purchasePrice",
    "quantity",
    "currentPrice",
    "purchaseValue",
    "currentValue",
)


def parse_instant(value: datetime | date | str) -> datetime:
    """Return a timezone-aware instant; naive values are treated as UTC."""

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        dt = datetime.fromisoformat(str(value).strip())
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_instant(value: datetime) -> str:
    """Serialise an instant as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""

    utc = parse_instant(value).astimezone(timezone.utc)
    return f"{utc:%Y-%m-%dT%H:%M:%S}.{utc.microsecond // 1000:03d}Z"


@dataclass(slots=True)
class Snapshot:
    id: int
    date: datetime
    assets: list[Asset]
    tag: str = ""
    note: str = ""

    def __post_init__(self) -> None:
        self.date = parse_instant(self.date)
        self.assets = [a if isinstance(a, Asset) else Asset(*a) for a in self.assets]

    def to_raw(self) -> dict[str, object]:
        """Return the persisted shape: only raw fields, assets as arrays."""

        return {
            "id": self.id,
            "date": format_instant(self.date),
            "assets": [list(asset) for asset in self.assets],
            "tag": self.tag or "",
            "note": self.note or "",
        }


@dataclass(slots=True)
class DerivedSnapshot(Snapshot):
    """Snapshot enriched with aggregates computed on load."""

    total_current_value: float = 0.0
    total_purchase_value: float = 0.0
    variation: float = 0.0
    category_totals: dict[str, float] = field(default_factory=dict)
    category_invested: dict[str, float] = field(default_factory=dict)
    term_totals: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class CategoryTarget:
    target: float = 0.0
    monthly: float = 0.0
    assets: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: dict) -> "CategoryTarget":
        assets_raw = raw.get("assets") or {}
        assets = {
            str(name): float((entry or {}).get("target", 0) or 0)
            for name, entry in assets_raw.items()
        }
        return cls(
            target=float(raw.get("target", 0) or 0),
            monthly=float(raw.get("monthly", 0) or 0),
            assets=assets,
        )

    def to_raw(self) -> dict[str, object]:
        raw: dict[str, object] = {"target": self.target, "monthly": self.monthly}
        if self.assets:
            raw["assets"] = {name: {"target": value} for name, value in self.assets.items()}
        return raw


@dataclass(slots=True)
class TargetsMeta:
    monthly_budget: float = 0.0

    @classmethod
    def from_raw(cls, raw: dict) -> "TargetsMeta":
        return cls(monthly_budget=max(0.0, float(raw.get("monthlyBudget", 0) or 0)))

    def to_raw(self) -> dict[str, object]:
        return {"monthlyBudget": self.monthly_budget}


__all__ = [
    "Asset",
    "LEGACY_ASSET_KEYS",
    "Snapshot",
    "DerivedSnapshot",
    "CategoryTarget",
    "TargetsMeta",
    "parse_instant",
    "format_instant",
]
