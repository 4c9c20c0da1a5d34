from __future__ import annotations

import json

import pytest

from patrimony.core.targets import TargetsBook, base_monthly_allocation, targets_indicator
from patrimony.data import TARGETS_KEY, TARGETS_META_KEY


@pytest.fixture
def latest(make_snapshot, make_asset):
    return make_snapshot(
        "2024-06-01",
        [
            make_asset("BTC", "Crypto", value=400, invested=300),
            make_asset("ETH", "Crypto", value=200, invested=200),
            make_asset("World ETF", "Funds", value=400, invested=350),
        ],
    )


def test_setters_clamp_and_persist(targets, repo, notifier):
    assert targets.set_target("Crypto", 150) == 100
    assert targets.set_target("Funds", -5) == 0
    assert targets.set_monthly("Crypto", -10) == 0
    assert targets.set_asset_target("Crypto", "BTC", 70) == 70
    assert targets.set_monthly_budget(500) == 500

    reloaded = TargetsBook(repo, notifier=notifier).load()
    assert reloaded.get("Crypto").target == 100
    assert reloaded.get("Crypto").assets == {"BTC": 70}
    assert reloaded.meta.monthly_budget == 500
    assert json.loads(repo.get(TARGETS_META_KEY)) == {"monthlyBudget": 500}
    assert json.loads(repo.get(TARGETS_KEY))["Crypto"]["assets"] == {"BTC": {"target": 70}}


def test_unknown_category_defaults_to_zero(targets):
    entry = targets.get("Nothing")
    assert (entry.target, entry.monthly, entry.assets) == (0, 0, {})
    assert "Nothing" not in targets.targets


@pytest.mark.parametrize("key", [TARGETS_KEY, TARGETS_META_KEY])
def test_corrupt_targets_are_reset(repo, notifier, key):
    repo.set(key, "{broken")
    book = TargetsBook(repo, notifier=notifier).load()
    assert book.targets == {}
    assert book.meta.monthly_budget == 0
    assert repo.get(key) is None
    assert len(notifier.errors) == 1


def test_category_rows(targets, latest):
    targets.set_target("Crypto", 50)
    targets.set_target("Funds", 50)
    targets.set_monthly("Funds", 100)
    targets.set_monthly_budget(200)

    rows = targets.category_rows(latest)
    assert [row["name"] for row in rows] == ["Crypto", "Funds"]
    crypto, funds = rows
    assert crypto["current_pct"] == pytest.approx(60)
    assert crypto["diff"] == pytest.approx(-10)
    assert crypto["base_monthly"] == pytest.approx(100)
    assert funds["diff"] == pytest.approx(10)
    assert funds["impact"] == pytest.approx(10 - abs(50 - 500 / 1100 * 100))

    indicator = targets_indicator(rows)
    assert indicator == {"sum_targets": 100, "delta_to_100": 0}
    assert targets.monthly_total(latest) == 100
    assert targets.category_rows(None) == []


def test_asset_rows(targets, latest):
    targets.set_asset_target("Crypto", "BTC", 50)
    rows = targets.asset_rows(latest, "Crypto")
    assert [row["name"] for row in rows] == ["ETH", "BTC"]
    btc = rows[1]
    assert btc["current_pct"] == pytest.approx(200 / 3)
    assert btc["diff"] == pytest.approx(50 - 200 / 3)
    assert rows[0]["target"] == 0


def test_base_monthly_allocation():
    assert base_monthly_allocation(25, 100, 400) == 100
    assert base_monthly_allocation(25, 0, 400) == 0
    assert base_monthly_allocation(25, 100, 0) == 0


def test_auto_balance_requires_budget_and_value(targets, latest, notifier):
    assert targets.auto_balance(latest) == {}
    assert targets.auto_balance(None) == {}
    assert notifier.messages() == []


def test_auto_balance_zero_target_floors_to_nothing(targets, make_snapshot, make_asset, notifier):
    latest = make_snapshot(
        "2024-06-01",
        [make_asset("A", "A", value=500, invested=500), make_asset("B", "B", value=500, invested=500)],
    )
    targets.set_target("A", 100)
    targets.set_target("B", 0)
    targets.set_monthly_budget(1000)
    assert targets.auto_balance(latest) == {"A": 1000, "B": 0}
    assert targets.get("A").monthly == 1000
    assert targets.get("B").monthly == 0
    assert notifier.messages()[-1] == "Monthly contributions balanced"


def test_auto_balance_favours_underweight(targets, latest):
    targets.set_target("Crypto", 50)
    targets.set_target("Funds", 50)
    targets.set_monthly_budget(300)
    allocation = targets.auto_balance(latest)
    # Crypto sits at 60% (weight 44) and Funds at 40% (weight 56).
    assert allocation == {"Crypto": 132, "Funds": 168}
    assert sum(allocation.values()) == 300
