from __future__ import annotations

import pytest

from patrimony.core.codec import parse_tabular_input
from patrimony.core.metrics import (
    compute_snapshot_metrics,
    normalize_key,
    roi_pct,
    snapshot_values,
)
from patrimony.core.models import Snapshot


def test_single_asset_totals(btc_row):
    snapshot = compute_snapshot_metrics(Snapshot(1, "2024-01-31", parse_tabular_input(btc_row)))
    assert snapshot.total_current_value == pytest.approx(12000)
    assert snapshot.total_purchase_value == pytest.approx(10000)
    assert snapshot.variation == pytest.approx(2000)
    assert snapshot.category_totals == {"Crypto": pytest.approx(12000)}
    assert snapshot.term_totals == {"Long": pytest.approx(12000)}


def test_grouping_by_category_and_term(btc_row, etf_row):
    assets = parse_tabular_input("\n".join([btc_row, etf_row, "Cash\tShort\tCash\t1\t500\t1\t500\t500"]))
    snapshot = compute_snapshot_metrics(Snapshot(1, "2024-01-31", assets))
    assert snapshot.category_totals == {
        "Crypto": pytest.approx(12000),
        "Funds": pytest.approx(4500),
        "Cash": pytest.approx(500),
    }
    assert snapshot.category_invested["Funds"] == pytest.approx(4000)
    assert snapshot.term_totals == {"Long": pytest.approx(16500), "Short": pytest.approx(500)}
    assert snapshot_values(snapshot, "Funds") == (pytest.approx(4500), pytest.approx(4000))
    assert snapshot_values(snapshot) == (pytest.approx(17000), pytest.approx(14500))


def test_empty_snapshot_has_zero_totals():
    snapshot = compute_snapshot_metrics(Snapshot(1, "2024-01-31", []))
    assert snapshot.total_current_value == 0
    assert snapshot.category_totals == {}


def test_roi_guards_zero_investment():
    assert roi_pct(120, 100) == pytest.approx(20)
    assert roi_pct(50, 0) == 0


def test_normalize_key():
    assert normalize_key("  World   ETF ") == "world etf"
    assert normalize_key(None) == ""
