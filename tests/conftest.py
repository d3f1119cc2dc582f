"""Shared fixtures and upstream payload builders."""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from hfv.config import Settings

API_KEY = "test-secret-key"


def listing_entry(asset_id: int, name: str, symbol: str, convert: str, price: float) -> Dict[str, Any]:
    return {
        "id": asset_id,
        "name": name,
        "symbol": symbol,
        "quote": {
            convert: {
                "price": price,
                "percent_change_24h": 1.5,
                "market_cap": price * 1000,
            }
        },
    }


def listings_payload(convert: str = "USD", scale: float = 1.0) -> List[Dict[str, Any]]:
    return [
        listing_entry(1, "Bitcoin", "BTC", convert, 65000.0 * scale),
        listing_entry(1027, "Ethereum", "ETH", convert, 3200.0 * scale),
        listing_entry(5426, "Solana", "SOL", convert, 150.0 * scale),
    ]


def global_payload(convert: str = "USD") -> Dict[str, Any]:
    return {
        "btc_dominance": 52.1234,
        "eth_dominance": 17.5,
        "quote": {convert: {"total_market_cap": 2.4e12, "total_volume_24h": 9.1e10}},
    }


def exchanges_payload() -> List[Dict[str, Any]]:
    return [
        {"id": 270, "name": "Binance", "num_market_pairs": 1500, "quote": {"USD": {"volume_24h": 1.2e10}}},
        {"id": 89, "name": "Coinbase Exchange", "num_market_pairs": 600, "quote": {"USD": {"volume_24h": 2.1e9}}},
    ]


def info_payload(symbol: str = "BTC") -> Dict[str, Any]:
    return {
        "data": {
            symbol: [
                {
                    "id": 1,
                    "name": "Bitcoin",
                    "symbol": symbol,
                    "logo": "https://s2.coinmarketcap.com/static/img/coins/64x64/1.png",
                    "urls": {"website": ["https://bitcoin.org/"]},
                }
            ]
        }
    }


def quotes_payload(symbol: str = "BTC", convert: str = "USD", price: float = 65000.0) -> Dict[str, Any]:
    return {
        "data": {
            symbol: [
                {
                    "id": 1,
                    "name": "Bitcoin",
                    "symbol": symbol,
                    "quote": {convert: {"price": price, "percent_change_24h": -2.25, "market_cap": 1.28e12}},
                }
            ]
        }
    }


@pytest.fixture
def config() -> Settings:
    return Settings(
        cmc_api_key=API_KEY,
        cmc_base_url="https://upstream.test",
        default_convert="USD",
        exchanges_limit=200,
        markets_limit=100,
        supported_currencies=("USD", "GBP", "EUR"),
    )
