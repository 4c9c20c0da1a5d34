from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import tomllib

from .core.ranges import DEFAULT_TIMEZONE, RANGE_MONTHS

HOME_ENV = "PATRIMONY_HOME"

DEFAULT_CONFIG_CONTENT = """timezone = \"Europe/Madrid\"
currency_symbol = \"€\"

[storage]
# json or sqlite; path defaults to the config directory
backend = \"json\"
# path = \"~/.patrimony/patrimony.json\"

[sync]
# url = \"https://example.org/api/finanzas/sync\"
timeout_seconds = 15

[analytics]
default_range = \"all\"
opportunity_range_months = 6
composition_compare_months = 1
"""


def default_config_dir() -> Path:
    return Path(os.environ.get(HOME_ENV, Path.home() / ".patrimony")).expanduser()


@dataclass
class StorageConfig:
    backend: str = "json"
    path: Optional[Path] = None


@dataclass
class SyncConfig:
    url: str = ""
    timeout_seconds: float = 15.0

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass
class AnalyticsConfig:
    default_range: str = "all"
    opportunity_range_months: int = 6
    composition_compare_months: int = 1


@dataclass
class Config:
    timezone: str = DEFAULT_TIMEZONE
    currency_symbol: str = "€"
    config_dir: Path = field(default_factory=default_config_dir)
    storage: StorageConfig = field(default_factory=StorageConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)

    @property
    def storage_path(self) -> Path:
        if self.storage.path is not None:
            return self.storage.path
        suffix = "db" if self.storage.backend == "sqlite" else "json"
        return self.config_dir / f"patrimony.{suffix}"


def _load_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def ensure_config(path: Path | None = None) -> Path:
    """Ensure a configuration file exists at *path* and return it."""

    target = Path(path) if path is not None else default_config_dir() / "config.toml"
    if not target.exists():
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(DEFAULT_CONFIG_CONTENT, encoding="utf-8")
    return target


def load_config(path: Optional[Path] = None) -> Config:
    cfg_path = Path(path) if path is not None else default_config_dir() / "config.toml"
    data = _load_toml(cfg_path)

    cfg = Config(config_dir=cfg_path.parent)
    for key in ("timezone", "currency_symbol"):
        if key in data:
            setattr(cfg, key, str(data[key]))

    storage = data.get("storage", {})
    cfg.storage = StorageConfig(
        backend=str(storage.get("backend", cfg.storage.backend)).lower(),
        path=Path(storage["path"]).expanduser() if storage.get("path") else None,
    )

    sync = data.get("sync", {})
    cfg.sync = SyncConfig(
        url=str(sync.get("url", "") or ""),
        timeout_seconds=float(sync.get("timeout_seconds", cfg.sync.timeout_seconds)),
    )

    analytics = data.get("analytics", {})
    default_range = str(analytics.get("default_range", cfg.analytics.default_range))
    if default_range not in RANGE_MONTHS:
        default_range = "all"
    cfg.analytics = AnalyticsConfig(
        default_range=default_range,
        opportunity_range_months=max(
            1, int(analytics.get("opportunity_range_months", cfg.analytics.opportunity_range_months))
        ),
        composition_compare_months=max(
            1, int(analytics.get("composition_compare_months", cfg.analytics.composition_compare_months))
        ),
    )
    return cfg


__all__ = [
    "Config",
    "StorageConfig",
    "SyncConfig",
    "AnalyticsConfig",
    "DEFAULT_CONFIG_CONTENT",
    "HOME_ENV",
    "default_config_dir",
    "ensure_config",
    "load_config",
]
