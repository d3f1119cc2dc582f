from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence

from hfv.config import settings
from hfv.dashboard.controller import PollingViewController, threaded
from hfv.models import CoinDetail, ExchangeListing, GlobalMetrics, MarketQuote


class JsonCaller(Protocol):
    def call(self, name: str, **params: Any) -> Any: ...


def filter_quotes(items: Sequence[MarketQuote], query: str) -> List[MarketQuote]:
    """Case-insensitive substring match over ``"name symbol"``; blank query keeps everything."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(items)
    return [item for item in items if needle in f"{item.name} {item.symbol}".lower()]


def global_stats_view(
    proxy: JsonCaller,
    convert: str,
    interval_seconds: Optional[float] = settings.poll_interval_seconds,
) -> PollingViewController[GlobalMetrics]:
    return PollingViewController(
        "global-stats",
        threaded(proxy.call, "global"),
        lambda payload, params: GlobalMetrics.from_payload(payload, params["convert"]),
        params={"convert": convert.upper()},
        interval_seconds=interval_seconds,
    )


def markets_view(
    proxy: JsonCaller,
    convert: str,
    limit: int = settings.markets_limit,
    interval_seconds: Optional[float] = settings.poll_interval_seconds,
) -> PollingViewController[List[MarketQuote]]:
    return PollingViewController(
        "markets",
        threaded(proxy.call, "markets"),
        lambda payload, params: MarketQuote.list_from_payload(payload, params["convert"]),
        params={"start": 1, "limit": limit, "convert": convert.upper()},
        interval_seconds=interval_seconds,
    )


def exchanges_view(
    proxy: JsonCaller,
    interval_seconds: Optional[float] = settings.poll_interval_seconds,
) -> PollingViewController[List[ExchangeListing]]:
    return PollingViewController(
        "exchanges",
        threaded(proxy.call, "exchanges"),
        lambda payload, params: ExchangeListing.list_from_payload(payload),
        interval_seconds=interval_seconds,
    )


def coin_detail_view(proxy: JsonCaller, symbol: str, convert: str) -> PollingViewController[CoinDetail]:
    # Fetched once per selection or currency change, no timer.
    return PollingViewController(
        f"coin-detail:{symbol}",
        threaded(proxy.call, "coin"),
        lambda payload, params: CoinDetail.from_envelope(payload, params["symbol"], params["convert"]),
        params={"symbol": symbol, "convert": convert.upper()},
        interval_seconds=None,
    )
