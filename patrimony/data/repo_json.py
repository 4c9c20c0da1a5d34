"""Portable JSON-backed repository implementation."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from .repo_base import BaseRepository, RepositoryError

_DEFAULT_STATE: dict[str, Any] = {"meta": {"format": 1}, "values": {}}


class JSONRepository(BaseRepository):
    """Repository that persists every key in a single JSON document."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self._write_state(_DEFAULT_STATE)
        self._state = self._read_state()

    # ------------------------------------------------------------------
    def close(self) -> None:
        self._write_state(self._state)

    # ------------------------------------------------------------------
    def _read_state(self) -> dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                state = json.load(fh)
        except json.JSONDecodeError as exc:
            raise RepositoryError(f"Invalid JSON repository: {exc}") from exc
        if not isinstance(state, dict) or not isinstance(state.get("values"), dict):
            raise RepositoryError(f"Invalid JSON repository layout in {self.path}")
        return state

    def _write_state(self, state: Mapping[str, Any]) -> None:
        try:
            with self.path.open("w", encoding="utf-8") as fh:
                json.dump(state, fh, indent=2, sort_keys=True)
        except OSError as exc:
            raise RepositoryError(f"Could not write {self.path}: {exc}") from exc

    def _persist(self) -> None:
        self._write_state(self._state)

    # --- key-value -----------------------------------------------------
    def get(self, key: str) -> str | None:
        return self._state["values"].get(key)

    def set(self, key: str, value: str) -> None:
        self._state["values"][key] = str(value)
        self._persist()

    def remove(self, key: str) -> None:
        if self._state["values"].pop(key, None) is not None:
            self._persist()

    def keys(self) -> list[str]:
        return sorted(self._state["values"])


__all__ = ["JSONRepository"]
