from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import pytest

from patrimony.core.metrics import compute_snapshot_metrics
from patrimony.core.models import Asset, DerivedSnapshot, Snapshot
from patrimony.core.store import SnapshotStore
from patrimony.core.targets import TargetsBook
from patrimony.data import JSONRepository, SQLiteRepository
from patrimony.notify import CollectingNotifier

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def btc_row() -> str:
    return "BTC\tLong\tCrypto\t20.000,00 €\t0,5\t24.000,00 €\t10.000,00 €\t12.000,00 €"


@pytest.fixture
def etf_row() -> str:
    return "World ETF\tLong\tFunds\t80,00 €\t50\t90,00 €\t4.000,00 €\t4.500,00 €"


@pytest.fixture(params=["sqlite", "json"])
def repo(tmp_path, request):
    if request.param == "sqlite":
        instance = SQLiteRepository(tmp_path / "test.sqlite")
    else:
        instance = JSONRepository(tmp_path / "test.json")
    yield instance
    instance.close()


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def store(repo, notifier) -> SnapshotStore:
    return SnapshotStore(repo, notifier=notifier, now_fn=lambda: FIXED_NOW)


@pytest.fixture
def targets(repo, notifier) -> TargetsBook:
    return TargetsBook(repo, notifier=notifier)


@pytest.fixture
def make_asset() -> Callable[..., Asset]:
    def _make(
        name: str,
        category: str = "Crypto",
        *,
        value: float,
        invested: float,
        term: str = "Long",
        quantity: float = 1.0,
    ) -> Asset:
        return Asset(name, term, category, invested / quantity, quantity, value / quantity, invested, value)

    return _make


@pytest.fixture
def make_snapshot() -> Callable[..., DerivedSnapshot]:
    counter = iter(range(1, 10_000))

    def _make(when: str | datetime, assets: list[Asset], tag: str = "", note: str = "") -> DerivedSnapshot:
        return compute_snapshot_metrics(Snapshot(next(counter), when, list(assets), tag, note))

    return _make
