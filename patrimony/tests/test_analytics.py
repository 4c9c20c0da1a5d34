from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from patrimony.core import analytics
from patrimony.core.state import AppState

TZ = "Europe/Madrid"


@pytest.fixture
def roi_path(make_snapshot, make_asset):
    values = [100, 110, 105, 115]
    return [
        make_snapshot(f"2024-0{month}-15T12:00:00+00:00", [make_asset("BTC", value=value, invested=100)])
        for month, value in enumerate(values, start=1)
    ]


@pytest.fixture
def history(make_snapshot, make_asset):
    def snap(when, crypto, funds, crypto_invested, funds_invested):
        return make_snapshot(
            when,
            [
                make_asset("BTC", "Crypto", value=crypto * 2 / 3, invested=crypto_invested * 2 / 3),
                make_asset("ETH", "Crypto", value=crypto / 3, invested=crypto_invested / 3),
                make_asset("World ETF", "Funds", value=funds, invested=funds_invested),
            ],
        )

    return [
        snap("2023-06-15T12:00:00+00:00", 500, 500, 500, 500),
        snap("2024-01-15T12:00:00+00:00", 550, 550, 500, 500),
        snap("2024-05-15T12:00:00+00:00", 650, 650, 550, 550),
        snap("2024-06-10T12:00:00+00:00", 900, 600, 600, 600),
    ]


# ---------------------------------------------------------------------------
def test_cumulative_roi_series(roi_path):
    points = analytics.cumulative_roi_series(roi_path)
    assert [p.pct for p in points] == pytest.approx([0, 10, 5, 15])
    assert points[1].gain == pytest.approx(10)


def test_periodic_roi_excludes_new_money(make_snapshot, make_asset):
    monthly = [
        make_snapshot("2024-01-31T12:00:00+00:00", [make_asset("A", value=1000, invested=1000)]),
        make_snapshot("2024-02-29T12:00:00+00:00", [make_asset("A", value=1200, invested=1100)]),
    ]
    points = analytics.periodic_roi_series(monthly)
    assert points[0].pct == pytest.approx(0)
    assert points[1].pct == pytest.approx(10)
    assert points[1].gain == pytest.approx(100)


def test_annualized_roi():
    start = datetime(2022, 1, 1, tzinfo=timezone.utc)
    current = start + timedelta(days=730.5)
    assert analytics.annualized_roi(121, 100, start, current) == pytest.approx(10)
    assert analytics.annualized_roi(121, 0, start, current) == 0
    assert analytics.annualized_roi(121, 100, start, start) == 0
    assert analytics.annualized_roi(0, 100, start, current) == 0


def test_annualized_series_starts_at_zero(roi_path):
    points = analytics.annualized_roi_series(roi_path)
    assert points[0].pct == 0
    assert points[-1].pct > 15
    assert analytics.annualized_roi_series([]) == []


def test_max_drawdown_roi(roi_path):
    assert analytics.max_drawdown_roi(roi_path) == pytest.approx(-5)
    assert analytics.max_drawdown_roi([]) == 0


def test_calculate_max_drawdown():
    assert analytics.calculate_max_drawdown([100, 120, 90, 130]) == pytest.approx(-25)
    assert analytics.calculate_max_drawdown([100]) is None


def test_calculate_volatility():
    assert analytics.calculate_volatility([0.01]) is None
    assert analytics.calculate_volatility([0.1, -0.1]) == pytest.approx(10 * math.sqrt(12))


def test_best_period_and_volatility(roi_path):
    best = analytics.best_period(roi_path)
    assert best.date.month == 2
    assert best.value == pytest.approx(10)
    assert analytics.portfolio_volatility(roi_path) > 0
    assert analytics.best_period(roi_path[:1]) is None


def test_win_rate_summary(history):
    latest = history[-1]
    rate = analytics.win_rate_summary(latest)
    assert rate.items == 2
    assert rate.win_rate == pytest.approx(100)
    assert rate.best_name == "Crypto"
    assert rate.best_roi == pytest.approx(0.5)
    assert rate.worst_name == "Funds"
    assert rate.worst_roi == pytest.approx(0)

    empty = analytics.win_rate_summary(None)
    assert (empty.win_rate, empty.best_name, empty.worst_name) == (0, "-", "-")


def test_win_rate_counts_losers(make_snapshot, make_asset):
    latest = make_snapshot(
        "2024-01-01",
        [
            make_asset("A", "X", value=120, invested=100),
            make_asset("B", "Y", value=90, invested=100),
            make_asset("C", "Z", value=100, invested=100),
        ],
    )
    rate = analytics.win_rate_summary(latest)
    assert rate.win_rate == pytest.approx(200 / 3)
    assert rate.worst_name == "Y"


def test_projected_value(make_snapshot, make_asset):
    first = make_snapshot("2023-01-01T00:00:00+00:00", [make_asset("A", value=1000, invested=1000)])
    latest = make_snapshot("2024-01-01T00:00:00+00:00", [make_asset("A", value=1100, invested=1000)])
    projection = analytics.projected_value([first, latest], latest)
    assert projection.cagr == pytest.approx(0.1)
    assert projection.value == pytest.approx(1210)

    assert analytics.projected_value([latest], latest).cagr == analytics.DEFAULT_CAGR
    assert analytics.projected_value([], None).value == 0

    wiped = make_snapshot("2024-01-01T00:00:00+00:00", [make_asset("A", value=0, invested=1000)])
    assert analytics.projected_value([first, wiped], wiped).cagr == -0.5

    tripled = make_snapshot("2024-01-01T00:00:00+00:00", [make_asset("A", value=3000, invested=1000)])
    assert analytics.projected_value([first, tripled], tripled).cagr == 1.0


def test_top_items_and_category_performance(history):
    latest = history[-1]
    top = analytics.top_items(latest, "Crypto", limit=1)
    assert [row["name"] for row in top] == ["BTC"]

    rows = analytics.category_performance(latest, history, None)
    assert [row["name"] for row in rows] == ["Crypto", "Funds"]
    assert rows[0]["roi_pct"] == pytest.approx(50)
    assert rows[0]["drawdown"] == pytest.approx(0)
    assert rows[1]["drawdown"] == pytest.approx((600 - 650) / 650 * 100)
    assert rows[0]["volatility"] is not None

    single = analytics.category_performance(latest, history[-1:], None)
    assert single[0]["volatility"] is None and single[0]["drawdown"] is None

    assets = analytics.category_performance(latest, history, "Crypto")
    assert {row["name"] for row in assets} == {"BTC", "ETH"}


def test_opportunities_flags_sharp_drop(make_snapshot, make_asset):
    monthly = [
        make_snapshot(
            f"2024-0{month}-15T12:00:00+00:00",
            [make_asset("A", value=value, invested=100), make_asset("B", value=100, invested=100)],
        )
        for month, value in enumerate([100, 100, 100, 60], start=1)
    ]
    ranked = analytics.opportunities(monthly, monthly[-1])
    assert [item.label for item in ranked] == ["A"]
    item = ranked[0]
    assert item.tags == ["abnormal_drop", "high_drawdown", "negative_trend"]
    assert item.stats.last_return == pytest.approx(-40)
    assert item.score == pytest.approx(4)

    assert analytics.opportunities(monthly[:1], monthly[0]) == []
    assert analytics.opportunities([], None) == []


def test_opportunity_tags_for_net_selloff():
    stats = analytics.series_stats([(1000, 1000), (500, 500)])
    assert stats.net_flow_pct == pytest.approx(-50)
    assert "net_selloff" in analytics.opportunity_tags(stats)
    assert analytics.opportunity_score(stats) == pytest.approx(5 * 0.6)


def test_portfolio_summary(history):
    summary = analytics.portfolio_summary(history, None, TZ)
    assert summary.total_value == pytest.approx(1500)
    assert summary.total_invested == pytest.approx(1200)
    assert summary.accumulated_roi == pytest.approx(25)
    assert summary.last_month_invested == pytest.approx(100)
    assert summary.period_gain == pytest.approx(100)
    assert summary.period_roi == pytest.approx(100 / 1300 * 100)
    assert summary.change_vs_year_start == pytest.approx(200)
    assert summary.change_vs_previous_month == pytest.approx(100)
    assert summary.change_vs_year_ago == pytest.approx(300)


def test_portfolio_summary_without_history():
    summary = analytics.portfolio_summary([], None, TZ)
    assert summary.total_value == 0
    assert summary.change_vs_previous_month is None


def test_composition(history):
    rows = analytics.composition(history, None, 1, TZ)
    assert [row["name"] for row in rows] == ["Crypto", "Funds"]
    assert rows[0]["percent"] == pytest.approx(60)
    assert rows[0]["prev_percent"] == pytest.approx(50)
    assert rows[0]["change"] == pytest.approx(10)

    assets = analytics.composition(history, "Crypto", 1, TZ)
    assert [row["name"] for row in assets] == ["BTC", "ETH"]
    assert assets[0]["percent"] == pytest.approx(200 / 3)
    assert assets[0]["change"] == pytest.approx(0)


def test_composition_without_reference(history):
    rows = analytics.composition(history[-1:], None, 1, TZ)
    assert all(row["change"] == 0 for row in rows)


def test_term_distribution(make_snapshot, make_asset):
    latest = make_snapshot(
        "2024-06-10T12:00:00+00:00",
        [
            make_asset("BTC", "Crypto", value=300, invested=200, term="Short"),
            make_asset("World ETF", "Funds", value=600, invested=500),
            make_asset("ETH", "Crypto", value=100, invested=100),
        ],
    )
    rows = analytics.term_distribution(latest)
    assert [row["term"] for row in rows] == ["Short", "Long"]
    assert rows[0]["value"] == pytest.approx(300)
    assert rows[0]["percent"] == pytest.approx(30)
    assert rows[1]["percent"] == pytest.approx(70)

    crypto = analytics.term_distribution(latest, "Crypto")
    assert [(row["term"], row["percent"]) for row in crypto] == [
        ("Short", pytest.approx(75)),
        ("Long", pytest.approx(25)),
    ]
    assert analytics.term_distribution(None) == []


def test_dashboard_on_empty_state(store, targets):
    board = analytics.build_dashboard(AppState(store, targets))
    assert board.summary.total_value == 0
    assert board.max_drawdown == 0
    assert board.win_rate.best_name == "-"
    assert board.projection.value == 0
    assert board.volatility == 0
    assert board.best_month is None
    assert board.opportunities == []


def test_dashboard_with_category(store, targets, history):
    store.snapshots = list(history)
    state = AppState(store, targets, selected_category="Funds", timezone=TZ)
    board = analytics.build_dashboard(state)
    assert board.summary.total_value == pytest.approx(600)
    assert board.win_rate.items == 1
    assert board.max_drawdown == pytest.approx(-100 / 550 * 100)
