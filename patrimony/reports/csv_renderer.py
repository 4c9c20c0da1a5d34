"""CSV renderer for analytics tables."""
from __future__ import annotations

import csv
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from ..core.models import format_instant


def _normalise_fieldnames(rows: Sequence[Mapping[str, object]], fieldnames: Sequence[str] | None) -> list[str]:
    if fieldnames:
        return list(fieldnames)
    keys: list[str] = []
    for row in rows:
        for key in row:
            if key not in keys:
                keys.append(key)
    return keys


def format_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:.4f}"
    if isinstance(value, datetime):
        return format_instant(value)
    if isinstance(value, (list, tuple)):
        return ";".join(str(item) for item in value)
    return str(value)


def render(rows: Sequence[Mapping[str, object]], fieldnames: Sequence[str] | None = None) -> str:
    materialised = list(rows)
    if not materialised:
        return ""
    headers = _normalise_fieldnames(materialised, fieldnames)
    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=headers, lineterminator="\n")
    writer.writeheader()
    for row in materialised:
        writer.writerow({key: format_value(row.get(key)) for key in headers})
    return buffer.getvalue()


def write(rows: Iterable[Mapping[str, object]], path: Path, fieldnames: Sequence[str] | None = None) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render(list(rows), fieldnames), encoding="utf-8")


__all__ = ["render", "write", "format_value"]
