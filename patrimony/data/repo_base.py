"""Repository base abstractions for persistence backends."""
from __future__ import annotations

from abc import ABC, abstractmethod

SNAPSHOTS_KEY = "portfolio_snapshots"
TARGETS_KEY = "portfolio_targets"
TARGETS_META_KEY = "portfolio_targets_meta"
SELECTED_CATEGORY_KEY = "portfolio_selected_category"
HOLDINGS_CHANGES_KEY = "portfolio_holdings_changes"

SYNCED_KEYS = {
    "snapshots": SNAPSHOTS_KEY,
    "targets": TARGETS_KEY,
    "targetsMeta": TARGETS_META_KEY,
}


class RepositoryError(RuntimeError):
    """Raised when the repository encounters an unrecoverable error."""


class BaseRepository(ABC):
    """Abstract string key-value store shared by all persistence backends.

    Values are opaque strings; callers own their serialisation.
    """

    # --- lifecycle -----------------------------------------------------
    def close(self) -> None:
        """Close any underlying resources (optional)."""

    # --- key-value -----------------------------------------------------
    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value or ``None`` when the key is unset."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete *key*; missing keys are ignored."""

    @abstractmethod
    def keys(self) -> list[str]:
        """Return every stored key in sorted order."""

    # --- utility -------------------------------------------------------
    def __enter__(self) -> "BaseRepository":  # pragma: no cover - convenience
        return self

    def __exit__(self, *exc_info: object) -> None:  # pragma: no cover - convenience
        self.close()


__all__ = [
    "BaseRepository",
    "RepositoryError",
    "SNAPSHOTS_KEY",
    "TARGETS_KEY",
    "TARGETS_META_KEY",
    "SELECTED_CATEGORY_KEY",
    "HOLDINGS_CHANGES_KEY",
    "SYNCED_KEYS",
]
