"""Trailing range selection and monthly collapsing of snapshot series."""
from __future__ import annotations

import calendar
from datetime import datetime, tzinfo
from typing import Sequence, TypeVar

from zoneinfo import ZoneInfo

from .models import Snapshot

RANGE_MONTHS: dict[str, int | None] = {"all": None, "6m": 6, "1y": 12, "3y": 36}

DEFAULT_TIMEZONE = "Europe/Madrid"

S = TypeVar("S", bound=Snapshot)


def _zone(tz: tzinfo | str | None) -> tzinfo:
    if tz is None:
        return ZoneInfo(DEFAULT_TIMEZONE)
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def shift_months(value: datetime, months: int) -> datetime:
    """Move *value* by *months* calendar months, clamping the day of month."""

    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def month_key(snapshot: Snapshot, tz: tzinfo | str | None = None) -> tuple[int, int]:
    local = snapshot.date.astimezone(_zone(tz))
    return local.year, local.month


def range_cutoff(latest: Snapshot, token: str, tz: tzinfo | str | None = None) -> datetime | None:
    """Local midnight ``N`` months before the latest snapshot, or ``None`` for ``all``."""

    if token not in RANGE_MONTHS:
        raise ValueError(f"Unsupported range token: {token!r}")
    months = RANGE_MONTHS[token]
    if months is None:
        return None
    local = latest.date.astimezone(_zone(tz))
    start = shift_months(local, -months)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def select_range(snapshots: Sequence[S], token: str = "all", tz: tzinfo | str | None = None) -> list[S]:
    """Snapshots dated on or after the trailing-window cutoff."""

    if not snapshots:
        if token not in RANGE_MONTHS:
            raise ValueError(f"Unsupported range token: {token!r}")
        return []
    cutoff = range_cutoff(snapshots[-1], token, tz)
    if cutoff is None:
        return list(snapshots)
    return [snapshot for snapshot in snapshots if snapshot.date >= cutoff]


def collapse_to_monthly(snapshots: Sequence[S], tz: tzinfo | str | None = None) -> list[S]:
    """Keep the last snapshot observed for each calendar month."""

    by_month: dict[tuple[int, int], S] = {}
    for snapshot in snapshots:
        by_month[month_key(snapshot, tz)] = snapshot
    return sorted(by_month.values(), key=lambda snapshot: snapshot.date)


def monthly_for_range(snapshots: Sequence[S], token: str = "all", tz: tzinfo | str | None = None) -> list[S]:
    return collapse_to_monthly(select_range(snapshots, token, tz), tz)


def previous_month_snapshot(
    snapshots: Sequence[S], current: S | None, tz: tzinfo | str | None = None
) -> S | None:
    """Most recent snapshot from a month before *current*'s month."""

    if current is None:
        return None
    current_key = month_key(current, tz)
    for snapshot in reversed(snapshots[:-1]):
        if month_key(snapshot, tz) < current_key:
            return snapshot
    return None


def snapshot_months_ago(
    snapshots: Sequence[S], current: S | None, months_back: int, tz: tzinfo | str | None = None
) -> S | None:
    """Latest snapshot at or before the month ending *months_back* months ago."""

    if current is None:
        return None
    year, month = month_key(current, tz)
    index = year * 12 + (month - 1) - months_back
    target = (index // 12, index % 12 + 1)
    for snapshot in reversed(snapshots[:-1]):
        if month_key(snapshot, tz) <= target:
            return snapshot
    return None


def year_start_snapshot(
    snapshots: Sequence[S], current: S | None, tz: tzinfo | str | None = None
) -> S | None:
    """First snapshot on or after 1 January of *current*'s year."""

    if current is None:
        return None
    zone = _zone(tz)
    start = datetime(current.date.astimezone(zone).year, 1, 1, tzinfo=zone)
    for snapshot in snapshots:
        if snapshot.date >= start:
            return snapshot
    return None


__all__ = [
    "RANGE_MONTHS",
    "DEFAULT_TIMEZONE",
    "shift_months",
    "month_key",
    "range_cutoff",
    "select_range",
    "collapse_to_monthly",
    "monthly_for_range",
    "previous_month_snapshot",
    "snapshot_months_ago",
    "year_start_snapshot",
]
