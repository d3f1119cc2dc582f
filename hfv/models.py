from __future__ import annotations

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field

COIN_LOGO_URL = "https://s2.coinmarketcap.com/static/img/coins/64x64/{id}.png"
EXCHANGE_LOGO_URL = "https://s2.coinmarketcap.com/static/img/exchanges/64x64/{id}.png"


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _quote_block(entry: Mapping[str, Any] | None, convert: str) -> Mapping[str, Any]:
    """Return ``entry["quote"][CONVERT]`` or an empty mapping."""
    if not isinstance(entry, Mapping):
        return {}
    quote = entry.get("quote")
    if not isinstance(quote, Mapping):
        return {}
    block = quote.get(convert.upper())
    return block if isinstance(block, Mapping) else {}


def _entries(payload: Any) -> List[Mapping[str, Any]]:
    if not isinstance(payload, list):
        return []
    return [entry for entry in payload if isinstance(entry, Mapping)]


class MarketQuote(BaseModel):
    """One asset from the latest listings snapshot, priced in a single currency."""

    id: int = Field(..., description="Upstream asset id.")
    name: str = Field(..., description="Asset name.")
    symbol: str = Field(..., description="Ticker symbol.")
    price: Optional[float] = Field(None, description="Latest price in the target currency.")
    percent_change_24h: Optional[float] = Field(None, description="Percentage change over the last 24h.")
    market_cap: Optional[float] = Field(None, description="Market capitalization in the target currency.")
    logo_url: str = Field(..., description="64x64 logo served by the upstream CDN.")

    @classmethod
    def from_listing(cls, entry: Mapping[str, Any], convert: str) -> "MarketQuote":
        quote = _quote_block(entry, convert)
        asset_id = int(entry.get("id") or 0)
        return cls(
            id=asset_id,
            name=str(entry.get("name", "")),
            symbol=str(entry.get("symbol", "")),
            price=_as_float(quote.get("price")),
            percent_change_24h=_as_float(quote.get("percent_change_24h")),
            market_cap=_as_float(quote.get("market_cap")),
            logo_url=COIN_LOGO_URL.format(id=asset_id),
        )

    @classmethod
    def list_from_payload(cls, payload: Any, convert: str) -> List["MarketQuote"]:
        return [cls.from_listing(entry, convert) for entry in _entries(payload)]


class GlobalMetrics(BaseModel):
    """Aggregate market figures in one target currency."""

    convert: str
    total_market_cap: Optional[float] = None
    total_volume_24h: Optional[float] = None
    btc_dominance: Optional[float] = Field(None, description="Bitcoin share of total market cap, in percent.")
    eth_dominance: Optional[float] = Field(None, description="Ether share of total market cap, in percent.")

    @classmethod
    def from_payload(cls, payload: Any, convert: str) -> "GlobalMetrics":
        data = payload if isinstance(payload, Mapping) else {}
        quote = _quote_block(data, convert)
        return cls(
            convert=convert.upper(),
            total_market_cap=_as_float(quote.get("total_market_cap")),
            total_volume_24h=_as_float(quote.get("total_volume_24h")),
            btc_dominance=_as_float(data.get("btc_dominance")),
            eth_dominance=_as_float(data.get("eth_dominance")),
        )


class ExchangeListing(BaseModel):
    """One exchange from the latest exchange ranking."""

    id: int
    name: str
    num_market_pairs: Optional[int] = None
    volume_24h: Optional[float] = Field(None, description="24h volume in USD.")
    logo_url: str

    @classmethod
    def from_entry(cls, entry: Mapping[str, Any]) -> "ExchangeListing":
        exchange_id = int(entry.get("id") or 0)
        pairs = entry.get("num_market_pairs")
        return cls(
            id=exchange_id,
            name=str(entry.get("name", "")),
            num_market_pairs=int(pairs) if isinstance(pairs, (int, float)) and not isinstance(pairs, bool) else None,
            volume_24h=_as_float(_quote_block(entry, "USD").get("volume_24h")),
            logo_url=EXCHANGE_LOGO_URL.format(id=exchange_id),
        )

    @classmethod
    def list_from_payload(cls, payload: Any) -> List["ExchangeListing"]:
        return [cls.from_entry(entry) for entry in _entries(payload)]


class CoinDetail(BaseModel):
    """Descriptive metadata plus latest quote for one selected asset."""

    symbol: str
    name: Optional[str] = None
    logo_url: Optional[str] = None
    official_site_url: Optional[str] = None
    price: Optional[float] = None
    percent_change_24h: Optional[float] = None
    market_cap: Optional[float] = None

    @classmethod
    def from_envelope(cls, payload: Any, symbol: str, convert: str) -> "CoinDetail":
        """Build from the coin proxy's ``{"info": ..., "quote": ...}`` envelope."""
        envelope = payload if isinstance(payload, Mapping) else {}
        info = envelope.get("info") if isinstance(envelope.get("info"), Mapping) else {}
        quote_entry = envelope.get("quote") if isinstance(envelope.get("quote"), Mapping) else {}
        quote = _quote_block(quote_entry, convert)

        urls = info.get("urls") if isinstance(info.get("urls"), Mapping) else {}
        websites = urls.get("website") or []
        official_site = websites[0] if isinstance(websites, list) and websites else None

        return cls(
            symbol=symbol,
            name=info.get("name") or quote_entry.get("name"),
            logo_url=info.get("logo") or None,
            official_site_url=official_site,
            price=_as_float(quote.get("price")),
            percent_change_24h=_as_float(quote.get("percent_change_24h")),
            market_cap=_as_float(quote.get("market_cap")),
        )


class HealthStatus(BaseModel):
    """Payload of the proxy's health endpoint."""

    status: str = "ok"
    upstream_key_configured: bool
