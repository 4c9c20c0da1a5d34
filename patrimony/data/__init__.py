"""Persistence layer exports."""

from .repo_base import (
    HOLDINGS_CHANGES_KEY,
    SELECTED_CATEGORY_KEY,
    SNAPSHOTS_KEY,
    SYNCED_KEYS,
    TARGETS_KEY,
    TARGETS_META_KEY,
    BaseRepository,
    RepositoryError,
)
from .repo_json import JSONRepository
from .repo_sqlite import SQLiteRepository


def open_repository(backend: str, path) -> BaseRepository:
    """Instantiate the repository named by *backend* (``json`` or ``sqlite``)."""

    backend = (backend or "json").lower()
    if backend == "json":
        return JSONRepository(path)
    if backend == "sqlite":
        return SQLiteRepository(path)
    raise RepositoryError(f"Unsupported storage backend: {backend!r}")


__all__ = [
    "BaseRepository",
    "RepositoryError",
    "JSONRepository",
    "SQLiteRepository",
    "open_repository",
    "SNAPSHOTS_KEY",
    "TARGETS_KEY",
    "TARGETS_META_KEY",
    "SELECTED_CATEGORY_KEY",
    "HOLDINGS_CHANGES_KEY",
    "SYNCED_KEYS",
]
