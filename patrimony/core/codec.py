"""Asset record codec: tabular text, legacy migration and number formatting."""
from __future__ import annotations

import math
import re
from typing import Any, Iterable, Mapping, Sequence

from .models import LEGACY_ASSET_KEYS, Asset

ASSET_COLUMNS = 8
DEFAULT_CURRENCY_SYMBOL = "€"

_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_WHITESPACE = re.compile(r"\s+")


def _is_tuple_asset(asset: Any) -> bool:
    return isinstance(asset, (list, tuple))


def _to_float(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _coerce_asset(raw: Sequence[Any]) -> Asset:
    values = list(raw)[:ASSET_COLUMNS]
    values += [0] * (ASSET_COLUMNS - len(values))
    return Asset(
        "" if values[0] is None else str(values[0]),
        "" if values[1] is None else str(values[1]),
        "" if values[2] is None else str(values[2]),
        *(_to_float(value) for value in values[3:]),
    )


def decode_legacy(raw_assets: Iterable[Mapping[str, Any] | Sequence[Any]]) -> list[Asset]:
    """Convert keyed asset objects into positional :class:`Asset` tuples.

    Entries that are already arrays are passed through unchanged in value.
    Anything else is dropped.
    """

    assets: list[Asset] = []
    for raw in raw_assets:
        if _is_tuple_asset(raw):
            assets.append(_coerce_asset(raw))
        elif isinstance(raw, Mapping):
            assets.append(_coerce_asset([raw.get(key) for key in LEGACY_ASSET_KEYS]))
    return assets


def needs_migration(raw_snapshots: Sequence[Mapping[str, Any]]) -> bool:
    """Detect the keyed-object asset format by inspecting the first asset."""

    if not raw_snapshots or not isinstance(raw_snapshots[0], Mapping):
        return False
    assets = raw_snapshots[0].get("assets")
    return bool(assets) and _is_tuple_asset(assets) and isinstance(assets[0], Mapping)


def migrate_snapshots(raw_snapshots: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Return copies of *raw_snapshots* with every asset in tuple form.

    Elements that are not objects are left out.
    """

    migrated = []
    for raw in raw_snapshots:
        if not isinstance(raw, Mapping):
            continue
        record = dict(raw)
        assets = raw.get("assets")
        record["assets"] = [list(asset) for asset in decode_legacy(assets if _is_tuple_asset(assets) else [])]
        migrated.append(record)
    return migrated


def parse_locale_number(text: str | None, currency_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> float:
    """Parse ``1.234,56 €`` style numbers; unparseable input yields ``0.0``."""

    if not text:
        return 0.0
    cleaned = text
    if currency_symbol:
        cleaned = cleaned.replace(currency_symbol, "")
    cleaned = _WHITESPACE.sub("", cleaned)
    cleaned = cleaned.replace(".", "").replace(",", ".")
    match = _NUMERIC_PREFIX.match(cleaned)
    if not match:
        return 0.0
    return _to_float(match.group(0))


def parse_tabular_input(text: str, currency_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> list[Asset]:
    """Parse newline separated rows of eight tab separated columns.

    Rows with fewer than eight columns are skipped.
    """

    assets: list[Asset] = []
    for line in (text or "").strip().splitlines():
        if not line.strip():
            continue
        parts = line.split("\t")
        if len(parts) < ASSET_COLUMNS:
            continue
        assets.append(
            Asset(
                name=parts[0].strip(),
                term=parts[1].strip(),
                category=parts[2].strip(),
                purchase_price=parse_locale_number(parts[3], currency_symbol),
                quantity=parse_locale_number(parts[4], currency_symbol),
                current_price=parse_locale_number(parts[5], currency_symbol),
                purchase_value=parse_locale_number(parts[6], currency_symbol),
                current_value=parse_locale_number(parts[7], currency_symbol),
            )
        )
    return assets


def format_number(value: float, *, min_digits: int = 2, max_digits: int = 6) -> str:
    """Format with ``.`` thousands and ``,`` decimals, keeping 2 to 6 decimals."""

    number = value if isinstance(value, (int, float)) and math.isfinite(value) else 0.0
    rendered = f"{number:,.{max_digits}f}"
    integer, _, fraction = rendered.partition(".")
    fraction = fraction.rstrip("0")
    if len(fraction) < min_digits:
        fraction = fraction.ljust(min_digits, "0")
    if integer in {"-0", "+0"} and not fraction.strip("0"):
        integer = "0"
    return f"{integer.replace(',', '.')},{fraction}"


def format_tabular(assets: Iterable[Asset]) -> str:
    """Render assets in the eight-column tabular format."""

    lines = []
    for asset in assets:
        lines.append(
            "\t".join(
                [
                    asset.name,
                    asset.term,
                    asset.category,
                    format_number(asset.purchase_price),
                    format_number(asset.quantity),
                    format_number(asset.current_price),
                    format_number(asset.purchase_value),
                    format_number(asset.current_value),
                ]
            )
        )
    return "\n".join(lines)


__all__ = [
    "ASSET_COLUMNS",
    "DEFAULT_CURRENCY_SYMBOL",
    "decode_legacy",
    "needs_migration",
    "migrate_snapshots",
    "parse_locale_number",
    "parse_tabular_input",
    "format_number",
    "format_tabular",
]
