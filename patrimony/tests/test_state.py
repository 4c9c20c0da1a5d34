from __future__ import annotations

import pytest

from patrimony.core.state import AppState
from patrimony.data import SELECTED_CATEGORY_KEY


@pytest.fixture
def state(store, targets, btc_row, etf_row):
    store.capture("\n".join([btc_row, etf_row]), "2024-01-31")
    return AppState(store, targets).load()


def test_categories_sorted(state):
    assert state.categories() == ["Crypto", "Funds"]


def test_selected_category_persists(state, store, targets, repo):
    assert state.select_category("Funds") is True
    assert repo.get(SELECTED_CATEGORY_KEY) == "Funds"
    assert AppState(store, targets).load().selected_category == "Funds"

    assert state.select_category("Unknown") is False
    assert state.selected_category is None
    assert repo.get(SELECTED_CATEGORY_KEY) is None

    assert state.select_category(None) is True


def test_stale_selection_is_ignored(state, store, targets, repo):
    repo.set(SELECTED_CATEGORY_KEY, "Gone")
    assert AppState(store, targets).load().selected_category is None


def test_set_range(state):
    state.set_range("6m")
    assert state.range_token == "6m"
    with pytest.raises(ValueError):
        state.set_range("5y")
    assert len(state.range_snapshots()) == 1
    assert len(state.monthly_snapshots()) == 1
