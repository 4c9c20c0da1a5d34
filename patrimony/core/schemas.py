"""Validation models for snapshot documents coming from outside the store."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from .models import parse_instant


class RawSnapshot(BaseModel):
    """One element of an imported or synced snapshot array."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    date: datetime
    assets: list[list[Any] | dict[str, Any]]
    tag: str | None = ""
    note: str | None = ""

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> datetime:
        if isinstance(value, (int, float)) or value in (None, ""):
            raise ValueError("date must be an ISO-8601 string")
        return parse_instant(value)


__all__ = ["RawSnapshot"]
