"""Markdown renderer for analytics tables."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Sequence

from .csv_renderer import _normalise_fieldnames, format_value


def _cell(value: object) -> str:
    return format_value(value).replace("|", "\\|").replace("\n", " ")


def render(rows: Sequence[Mapping[str, object]], fieldnames: Sequence[str] | None = None) -> str:
    materialised = list(rows)
    if not materialised:
        return ""
    headers = _normalise_fieldnames(materialised, fieldnames)
    lines = [f"| {' | '.join(headers)} |", f"| {' | '.join(['---'] * len(headers))} |"]
    for row in materialised:
        lines.append(f"| {' | '.join(_cell(row.get(column)) for column in headers)} |")
    return "\n".join(lines) + "\n"


def write(rows: Iterable[Mapping[str, object]], path: Path, fieldnames: Sequence[str] | None = None) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render(list(rows), fieldnames), encoding="utf-8")


__all__ = ["render", "write"]
