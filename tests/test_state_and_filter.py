from __future__ import annotations

import pytest

from conftest import listings_payload
from hfv.dashboard.state import AppState, MarketTab, Page, favorite_toggles
from hfv.dashboard.views import filter_quotes
from hfv.models import MarketQuote


@pytest.fixture
def quotes():
    return MarketQuote.list_from_payload(listings_payload("USD"), "USD")


def test_toggle_favorite_twice_restores_set() -> None:
    state = AppState(favorites=frozenset({"HFV", "BTC"}))
    original = state.favorites

    state.toggle_favorite("ETH")
    assert state.favorites == {"HFV", "BTC", "ETH"}
    state.toggle_favorite("ETH")
    assert state.favorites == original

    state.toggle_favorite("BTC")
    state.toggle_favorite("BTC")
    assert state.favorites == original


def test_favorite_toggles_reports_only_changed_checkboxes() -> None:
    favorites = frozenset({"HFV", "BTC"})
    flags = {"BTC": True, "ETH": True, "SOL": False, "HFV": False}

    assert favorite_toggles(favorites, flags) == ["ETH", "HFV"]
    assert favorite_toggles(favorites, {"BTC": True, "ETH": False}) == []


def test_applying_favorite_toggles_matches_checkboxes() -> None:
    state = AppState(favorites=frozenset({"HFV", "BTC"}))
    flags = {"BTC": False, "ETH": True, "SOL": False}

    for symbol in favorite_toggles(state.favorites, flags):
        state.toggle_favorite(symbol)

    assert state.favorites == {"HFV", "ETH"}
    assert favorite_toggles(state.favorites, flags) == []


def test_default_state() -> None:
    state = AppState()
    assert state.page is Page.MARKET
    assert state.market_tab is MarketTab.CRYPTO
    assert state.favorites == {"HFV"}
    assert state.selected is None


def test_set_currency_normalizes_and_reports_change() -> None:
    state = AppState(currency="USD", supported_currencies=("USD", "GBP", "EUR"))
    assert state.set_currency("eur") is True
    assert state.currency == "EUR"
    assert state.set_currency("EUR") is False


def test_set_currency_rejects_unknown_code() -> None:
    state = AppState(currency="USD", supported_currencies=("USD", "GBP", "EUR"))
    with pytest.raises(ValueError):
        state.set_currency("JPY")
    assert state.currency == "USD"


def test_filter_with_no_match_is_empty(quotes) -> None:
    assert filter_quotes(quotes, "dogecoin") == []


def test_filter_is_case_insensitive_over_name_and_symbol(quotes) -> None:
    assert [q.symbol for q in filter_quotes(quotes, "bItCoIn")] == ["BTC"]
    assert [q.symbol for q in filter_quotes(quotes, "eth")] == ["ETH"]
    assert [q.symbol for q in filter_quotes(quotes, "sol")] == ["SOL"]


def test_filter_matching_all_items() -> None:
    items = [
        MarketQuote(id=1, name="Bitcoin", symbol="BTC", logo_url="x"),
        MarketQuote(id=74, name="Dogecoin", symbol="DOGE", logo_url="x"),
        MarketQuote(id=3408, name="USD Coin", symbol="USDC", logo_url="x"),
    ]
    assert filter_quotes(items, "COIN") == items


def test_blank_query_keeps_everything(quotes) -> None:
    assert filter_quotes(quotes, "") == quotes
    assert filter_quotes(quotes, "   ") == quotes
