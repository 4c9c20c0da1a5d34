"""Time-series analytics over derived snapshots.

Every function is pure and accepts an optional ``category``. When a category
is given, values and invested amounts are summed over that category's assets
only (exact label match); otherwise portfolio totals are used. Empty inputs
produce zeroed results rather than errors.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, Sequence

from .metrics import category_assets, normalize_key, roi_pct, roi_ratio, snapshot_values, sum_values
from .models import DerivedSnapshot
from .ranges import previous_month_snapshot, snapshot_months_ago, year_start_snapshot

if TYPE_CHECKING:  # pragma: no cover
    from .state import AppState

DEFAULT_CAGR = 0.07
CAGR_BOUNDS = (-0.5, 1.0)
OPPORTUNITY_LIMIT = 6
COMPOSITION_ASSET_LIMIT = 8

_DAY_SECONDS = 24 * 60 * 60
_ROI_YEAR_SECONDS = 365.25 * _DAY_SECONDS
_CAGR_YEAR_SECONDS = 365 * _DAY_SECONDS


@dataclass(slots=True)
class RoiPoint:
    date: datetime
    pct: float
    gain: float


@dataclass(slots=True)
class BestPeriod:
    date: datetime
    value: float


@dataclass(slots=True)
class WinRate:
    win_rate: float = 0.0
    items: int = 0
    best_name: str = "-"
    best_roi: float = 0.0
    worst_name: str = "-"
    worst_roi: float = 0.0


@dataclass(slots=True)
class Projection:
    cagr: float
    value: float


@dataclass(slots=True)
class SeriesStats:
    last_return: float = 0.0
    mean: float = 0.0
    std: float = 0.0
    z_score: float = 0.0
    trend: float = 0.0
    drawdown: float = 0.0
    net_investment: float = 0.0
    net_flow_pct: float = 0.0


@dataclass(slots=True)
class Opportunity:
    label: str
    stats: SeriesStats
    tags: list[str]
    score: float


@dataclass(slots=True)
class PortfolioSummary:
    total_value: float = 0.0
    total_invested: float = 0.0
    accumulated_roi: float = 0.0
    period_roi: float = 0.0
    period_gain: float = 0.0
    last_month_invested: float | None = None
    change_vs_year_start: float | None = None
    change_vs_previous_month: float | None = None
    change_vs_year_ago: float | None = None


@dataclass(slots=True)
class Dashboard:
    summary: PortfolioSummary
    max_drawdown: float
    win_rate: WinRate
    projection: Projection
    volatility: float
    best_month: BestPeriod | None
    opportunities: list[Opportunity] = field(default_factory=list)


# ----------------------------------------------------------------------
# ROI series
def cumulative_roi_series(snapshots: Sequence[DerivedSnapshot], category: str | None = None) -> list[RoiPoint]:
    points = []
    for snapshot in snapshots:
        value, invested = snapshot_values(snapshot, category)
        points.append(RoiPoint(snapshot.date, roi_pct(value, invested), value - invested))
    return points


def periodic_roi_series(monthly: Sequence[DerivedSnapshot], category: str | None = None) -> list[RoiPoint]:
    """Net-of-flow change between consecutive monthly points.

    The first point carries its own cumulative ROI since there is nothing to
    compare it with.
    """

    points: list[RoiPoint] = []
    previous: tuple[float, float] | None = None
    for snapshot in monthly:
        value, invested = snapshot_values(snapshot, category)
        if previous is None:
            points.append(RoiPoint(snapshot.date, roi_pct(value, invested), value - invested))
        else:
            prev_value, prev_invested = previous
            gain = value - prev_value - (invested - prev_invested)
            pct = gain / prev_value * 100 if prev_value > 0 else 0.0
            points.append(RoiPoint(snapshot.date, pct, gain))
        previous = (value, invested)
    return points


def annualized_roi(value: float, invested: float, start: datetime, current: datetime) -> float:
    if invested <= 0:
        return 0.0
    ratio = value / invested
    if ratio <= 0:
        return 0.0
    years = (current - start).total_seconds() / _ROI_YEAR_SECONDS
    if years <= 0:
        return 0.0
    return (ratio ** (1 / years) - 1) * 100


def annualized_roi_series(snapshots: Sequence[DerivedSnapshot], category: str | None = None) -> list[RoiPoint]:
    if not snapshots:
        return []
    start = snapshots[0].date
    points = []
    for snapshot in snapshots:
        value, invested = snapshot_values(snapshot, category)
        points.append(
            RoiPoint(snapshot.date, annualized_roi(value, invested, start, snapshot.date), value - invested)
        )
    return points


# ----------------------------------------------------------------------
# Risk
def max_drawdown_roi(monthly: Sequence[DerivedSnapshot], category: str | None = None) -> float:
    """Largest fall of cumulative ROI below its running peak, in percentage points."""

    peak = -math.inf
    worst = 0.0
    for snapshot in monthly:
        roi = roi_pct(*snapshot_values(snapshot, category))
        peak = max(peak, roi)
        worst = min(worst, roi - peak)
    return worst


def calculate_max_drawdown(values: Sequence[float]) -> float | None:
    """Peak-relative drawdown of a value series, as a percentage."""

    if len(values) < 2:
        return None
    peak = values[0]
    worst = 0.0
    for value in values:
        peak = max(peak, value)
        if peak > 0:
            worst = min(worst, (value - peak) / peak)
    return worst * 100


def period_returns(monthly: Sequence[DerivedSnapshot], category: str | None = None) -> list[float]:
    """Net-of-flow monthly returns in percent; the first entry is always ``0``."""

    returns: list[float] = []
    previous: tuple[float, float] | None = None
    for snapshot in monthly:
        value, invested = snapshot_values(snapshot, category)
        if previous is None:
            returns.append(0.0)
        else:
            prev_value, prev_invested = previous
            gain = value - prev_value - (invested - prev_invested)
            returns.append(gain / prev_value * 100 if prev_value > 0 else 0.0)
        previous = (value, invested)
    return returns


def _population_std(values: Sequence[float]) -> tuple[float, float]:
    if not values:
        return 0.0, 0.0
    mean = sum(values) / len(values)
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    return mean, math.sqrt(variance)


def portfolio_volatility(monthly: Sequence[DerivedSnapshot], category: str | None = None) -> float:
    returns = [value for value in period_returns(monthly, category)[1:] if math.isfinite(value)]
    _, std = _population_std(returns)
    return std * math.sqrt(12)


def calculate_volatility(returns: Sequence[float]) -> float | None:
    """Annualised volatility of plain ratio returns, as a percentage."""

    if len(returns) < 2:
        return None
    _, std = _population_std(returns)
    return std * math.sqrt(12) * 100


def best_period(monthly: Sequence[DerivedSnapshot], category: str | None = None) -> BestPeriod | None:
    returns = period_returns(monthly, category)
    best: BestPeriod | None = None
    for snapshot, value in zip(monthly[1:], returns[1:]):
        if not math.isfinite(value):
            continue
        if best is None or value > best.value:
            best = BestPeriod(snapshot.date, value)
    return best


# ----------------------------------------------------------------------
# Latest-snapshot indicators
def _latest_items(latest: DerivedSnapshot, category: str | None) -> list[tuple[str, float, float]]:
    if category:
        return [
            (asset.name, asset.current_value, asset.purchase_value)
            for asset in category_assets(latest, category)
        ]
    items = []
    for name in latest.category_totals:
        value, invested = sum_values(category_assets(latest, name))
        items.append((name, value, invested))
    return items


def win_rate_summary(latest: DerivedSnapshot | None, category: str | None = None) -> WinRate:
    """Share of items (assets or categories) at or above break-even."""

    if latest is None:
        return WinRate()
    summary = WinRate()
    best = -math.inf
    worst = math.inf
    wins = 0
    for name, value, invested in _latest_items(latest, category):
        roi = roi_ratio(value, invested)
        if roi > best:
            best = roi
            summary.best_name, summary.best_roi = name, roi
        if roi < worst:
            worst = roi
            summary.worst_name, summary.worst_roi = name, roi
        if roi >= 0:
            wins += 1
        summary.items += 1
    summary.win_rate = wins / summary.items * 100 if summary.items else 0.0
    return summary


def projected_value(range_snapshots: Sequence[DerivedSnapshot], latest: DerivedSnapshot | None) -> Projection:
    """Project the portfolio one year ahead from the range's realised CAGR."""

    if latest is None:
        return Projection(DEFAULT_CAGR, 0.0)
    cagr = DEFAULT_CAGR
    if len(range_snapshots) >= 2:
        first = range_snapshots[0]
        years = (latest.date - first.date).total_seconds() / _CAGR_YEAR_SECONDS
        if years > 0.01 and first.total_purchase_value > 0:
            total_return = latest.total_current_value / first.total_purchase_value
            low, high = CAGR_BOUNDS
            if total_return <= 0:
                cagr = low
            else:
                cagr = max(low, min(total_return ** (1 / years) - 1, high))
    return Projection(cagr, latest.total_current_value * (1 + cagr))


def top_items(latest: DerivedSnapshot | None, category: str | None = None, limit: int = 5) -> list[dict[str, object]]:
    if latest is None:
        return []
    rows = [
        {"name": name, "value": value, "invested": invested, "roi_pct": roi_pct(value, invested)}
        for name, value, invested in _latest_items(latest, category)
    ]
    rows.sort(key=lambda row: row["value"], reverse=True)
    return rows[:limit]


def category_performance(
    latest: DerivedSnapshot | None,
    monthly: Sequence[DerivedSnapshot],
    category: str | None = None,
) -> list[dict[str, object]]:
    """Rows for the performance table sorted by ROI, best first.

    Category rows also carry volatility and drawdown over the monthly series;
    either is ``None`` when fewer than two points exist.
    """

    if latest is None:
        return []
    rows: list[dict[str, object]] = []
    if category:
        for asset in category_assets(latest, category):
            rows.append(
                {
                    "name": asset.name,
                    "invested": asset.purchase_value,
                    "value": asset.current_value,
                    "roi_pct": roi_pct(asset.current_value, asset.purchase_value),
                }
            )
    else:
        for name in latest.category_totals:
            invested = latest.category_invested.get(name, 0.0)
            value = latest.category_totals.get(name, 0.0)
            values = [sum_values(category_assets(snapshot, name))[0] for snapshot in monthly]
            returns = [
                (current - prev) / prev if prev > 0 else 0.0
                for prev, current in zip(values, values[1:])
            ]
            rows.append(
                {
                    "name": name,
                    "invested": invested,
                    "value": value,
                    "roi_pct": roi_pct(value, invested),
                    "volatility": calculate_volatility(returns),
                    "drawdown": calculate_max_drawdown(values),
                }
            )
    rows.sort(key=lambda row: row["roi_pct"], reverse=True)
    return rows


# ----------------------------------------------------------------------
# Opportunities
def series_stats(series: Sequence[tuple[float, float]]) -> SeriesStats:
    """Statistics over ``(value, invested)`` points of one item's window."""

    returns: list[float] = []
    for (prev_value, prev_invested), (value, invested) in zip(series, series[1:]):
        if prev_value <= 0:
            continue
        gain = value - prev_value - (invested - prev_invested)
        ret = gain / prev_value * 100
        if math.isfinite(ret):
            returns.append(ret)
    mean, std = _population_std(returns)

    stats = SeriesStats(mean=mean, std=std)
    if not series:
        return stats
    first_value, first_invested = series[0]
    last_value, last_invested = series[-1]
    base = first_value if first_value > 0 else 0.0
    stats.net_investment = last_invested - first_invested
    net_gain = last_value - first_value - stats.net_investment
    stats.trend = net_gain / base * 100 if base > 0 else 0.0
    stats.net_flow_pct = stats.net_investment / base * 100 if base > 0 else 0.0
    peak = max(max(value for value, _ in series), 0.0)
    stats.drawdown = (last_value - peak) / peak * 100 if peak > 0 else 0.0
    stats.last_return = returns[-1] if returns else 0.0
    stats.z_score = (stats.last_return - mean) / std if std > 0 else 0.0
    return stats


def opportunity_tags(stats: SeriesStats) -> list[str]:
    tags = []
    if stats.net_flow_pct <= -2:
        tags.append("net_selloff")
    if stats.z_score <= -1.2 and stats.last_return < 0:
        tags.append("abnormal_drop")
    if stats.z_score >= 1.2 and stats.last_return > 0:
        tags.append("strong_momentum")
    if stats.drawdown <= -12 and stats.net_investment >= 0:
        tags.append("high_drawdown")
    if stats.trend >= 8 and stats.last_return >= 0:
        tags.append("positive_trend")
    if stats.trend <= -8 and stats.last_return <= 0:
        tags.append("negative_trend")
    return tags


def opportunity_score(stats: SeriesStats) -> float:
    penalty = 0.6 if stats.net_investment < 0 else 1.0
    return max(abs(stats.z_score), abs(stats.drawdown) / 10, abs(stats.trend) / 10) * penalty


def opportunities(
    monthly: Sequence[DerivedSnapshot],
    latest: DerivedSnapshot | None,
    category: str | None = None,
    range_months: int = 6,
) -> list[Opportunity]:
    """Rank the latest snapshot's assets by how unusual their recent movement is."""

    if latest is None:
        return []
    window_size = max(range_months + 1, 3)
    window = list(monthly[-window_size:])
    if len(window) < 2:
        return []

    category_key = normalize_key(category) if category else None
    latest_assets = latest.assets
    if category_key is not None:
        latest_assets = [a for a in latest_assets if normalize_key(a.category) == category_key]

    ranked: list[Opportunity] = []
    for asset in latest_assets:
        name_key = normalize_key(asset.name)
        series: list[tuple[float, float]] = []
        for snapshot in window:
            found = next(
                (
                    candidate
                    for candidate in snapshot.assets
                    if normalize_key(candidate.name) == name_key
                    and (category_key is None or normalize_key(candidate.category) == category_key)
                ),
                None,
            )
            series.append((found.current_value, found.purchase_value) if found else (0.0, 0.0))
        stats = series_stats(series)
        tags = opportunity_tags(stats)
        if tags:
            ranked.append(Opportunity(asset.name, stats, tags, opportunity_score(stats)))

    ranked.sort(key=lambda item: item.score, reverse=True)
    return ranked[:OPPORTUNITY_LIMIT]


# ----------------------------------------------------------------------
# Summary and composition
def portfolio_summary(
    snapshots: Sequence[DerivedSnapshot],
    category: str | None = None,
    tz: tzinfo | str | None = None,
) -> PortfolioSummary:
    """Headline figures for the latest snapshot.

    Period ROI and gain compare against the last snapshot of an earlier month
    and exclude new money invested in between. Profit changes compare the
    current unrealised profit against year start, the previous month and
    twelve months ago; each is ``None`` when no such snapshot exists.
    """

    if not snapshots:
        return PortfolioSummary()
    latest = snapshots[-1]
    value, invested = snapshot_values(latest, category)
    profit = value - invested
    summary = PortfolioSummary(
        total_value=value,
        total_invested=invested,
        accumulated_roi=roi_pct(value, invested),
        period_roi=roi_pct(value, invested),
        period_gain=profit,
    )

    previous = previous_month_snapshot(snapshots, latest, tz)
    if previous is not None:
        prev_value, prev_invested = snapshot_values(previous, category)
        new_investment = invested - prev_invested
        summary.period_gain = value - prev_value - new_investment
        summary.period_roi = summary.period_gain / prev_value * 100 if prev_value > 0 else 0.0
        summary.last_month_invested = new_investment

    def profit_change(other: DerivedSnapshot | None) -> float | None:
        if other is None:
            return None
        other_value, other_invested = snapshot_values(other, category)
        return profit - (other_value - other_invested)

    summary.change_vs_year_start = profit_change(year_start_snapshot(snapshots, latest, tz))
    summary.change_vs_previous_month = profit_change(previous)
    summary.change_vs_year_ago = profit_change(snapshot_months_ago(snapshots, latest, 12, tz))
    return summary


def composition(
    snapshots: Sequence[DerivedSnapshot],
    category: str | None = None,
    compare_months: int = 1,
    tz: tzinfo | str | None = None,
) -> list[dict[str, object]]:
    """Current weights with the weights from ``compare_months`` months earlier."""

    if not snapshots:
        return []
    latest = snapshots[-1]
    previous = snapshot_months_ago(snapshots, latest, compare_months, tz)
    rows: list[dict[str, object]] = []

    if category:
        assets = sorted(category_assets(latest, category), key=lambda a: a.current_value, reverse=True)
        total = sum(asset.current_value for asset in assets) or 1.0
        prev_total = total
        prev_by_key: dict[str, float] = {}
        if previous is not None:
            category_key = normalize_key(category)
            prev_assets = [a for a in previous.assets if normalize_key(a.category) == category_key]
            prev_total = sum(asset.current_value for asset in prev_assets) or 1.0
            for asset in prev_assets:
                prev_by_key.setdefault(normalize_key(asset.name), asset.current_value)
        for asset in assets[:COMPOSITION_ASSET_LIMIT]:
            percent = asset.current_value / total * 100
            prev_value = prev_by_key.get(normalize_key(asset.name))
            prev_percent = prev_value / prev_total * 100 if prev_value is not None else 0.0
            rows.append(
                {
                    "name": asset.name,
                    "percent": percent,
                    "prev_percent": prev_percent,
                    "change": percent - prev_percent if previous is not None else 0.0,
                }
            )
        return rows

    total = latest.total_current_value or 1.0
    prev_total = (previous.total_current_value or 1.0) if previous is not None else total
    names = sorted(latest.category_totals, key=lambda name: latest.category_totals[name], reverse=True)
    for name in names:
        percent = latest.category_totals[name] / total * 100
        prev_percent = 0.0
        if previous is not None:
            prev_percent = previous.category_totals.get(name, 0.0) / prev_total * 100
        rows.append(
            {
                "name": name,
                "percent": percent,
                "prev_percent": prev_percent,
                "change": percent - prev_percent if previous is not None else 0.0,
            }
        )
    return rows


def term_distribution(latest: DerivedSnapshot | None, category: str | None = None) -> list[dict[str, object]]:
    """Current value per investment term, in order of first appearance."""

    if latest is None:
        return []
    if category:
        totals: dict[str, float] = {}
        for asset in category_assets(latest, category):
            totals[asset.term] = totals.get(asset.term, 0.0) + asset.current_value
    else:
        totals = latest.term_totals
    total = sum(totals.values())
    return [
        {"term": term, "value": value, "percent": value / total * 100 if total > 0 else 0.0}
        for term, value in totals.items()
    ]


def build_dashboard(state: "AppState") -> Dashboard:
    """Compute every headline indicator for the state's range and category."""

    latest = state.latest
    category = state.selected_category
    monthly = state.monthly_snapshots()
    return Dashboard(
        summary=portfolio_summary(state.snapshots, category, state.timezone),
        max_drawdown=max_drawdown_roi(monthly, category),
        win_rate=win_rate_summary(latest, category),
        projection=projected_value(state.range_snapshots(), latest),
        volatility=portfolio_volatility(monthly, category),
        best_month=best_period(monthly, category),
        opportunities=opportunities(monthly, latest, category, state.opportunity_range_months),
    )


__all__ = [
    "DEFAULT_CAGR",
    "CAGR_BOUNDS",
    "RoiPoint",
    "BestPeriod",
    "WinRate",
    "Projection",
    "SeriesStats",
    "Opportunity",
    "PortfolioSummary",
    "Dashboard",
    "cumulative_roi_series",
    "periodic_roi_series",
    "annualized_roi",
    "annualized_roi_series",
    "max_drawdown_roi",
    "calculate_max_drawdown",
    "period_returns",
    "portfolio_volatility",
    "calculate_volatility",
    "best_period",
    "win_rate_summary",
    "projected_value",
    "top_items",
    "category_performance",
    "series_stats",
    "opportunity_tags",
    "opportunity_score",
    "opportunities",
    "portfolio_summary",
    "composition",
    "term_distribution",
    "build_dashboard",
]
