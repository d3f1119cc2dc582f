from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

import httpx

from hfv.config import Settings, settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-CMC_PRO_API_KEY"

LISTINGS_PATH = "/v1/cryptocurrency/listings/latest"
INFO_PATH = "/v2/cryptocurrency/info"
QUOTES_PATH = "/v2/cryptocurrency/quotes/latest"
GLOBAL_METRICS_PATH = "/v1/global-metrics/quotes/latest"
EXCHANGES_PATH = "/v1/exchange/listings/latest"


class MarketDataUpstream(Protocol):
    """What the proxy handlers need from the upstream provider."""

    async def listings(self, start: int, limit: int, convert: str) -> httpx.Response: ...

    async def info(self, symbol: str) -> httpx.Response: ...

    async def quotes(self, symbol: str, convert: str) -> httpx.Response: ...

    async def global_metrics(self, convert: str) -> httpx.Response: ...

    async def exchanges(self, start: int, limit: int) -> httpx.Response: ...


class CoinMarketCapClient:
    """CoinMarketCap Pro API client that attaches the server-held key to every call.

    Responses are returned as-is; callers decide what a non-2xx status means.
    """

    name = "CoinMarketCap"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://pro-api.coinmarketcap.com",
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            logger.warning("CMC_API_KEY is not set; upstream calls will be rejected by %s", self.name)
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={API_KEY_HEADER: api_key, "Accept": "application/json"},
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "CoinMarketCapClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: Mapping[str, Any]) -> httpx.Response:
        resp = await self._client.get(path, params=dict(params))
        logger.info("%s %s -> %s", self.name, path, resp.status_code)
        return resp

    async def listings(self, start: int, limit: int, convert: str) -> httpx.Response:
        return await self._get(LISTINGS_PATH, {"start": start, "limit": limit, "convert": convert})

    async def info(self, symbol: str) -> httpx.Response:
        return await self._get(INFO_PATH, {"symbol": symbol})

    async def quotes(self, symbol: str, convert: str) -> httpx.Response:
        return await self._get(QUOTES_PATH, {"symbol": symbol, "convert": convert})

    async def global_metrics(self, convert: str) -> httpx.Response:
        return await self._get(GLOBAL_METRICS_PATH, {"convert": convert})

    async def exchanges(self, start: int, limit: int) -> httpx.Response:
        return await self._get(EXCHANGES_PATH, {"start": start, "limit": limit})


def build_client(config: Settings = settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> CoinMarketCapClient:
    """Factory for a client configured from settings."""
    return CoinMarketCapClient(
        api_key=config.cmc_api_key,
        base_url=config.cmc_base_url,
        timeout_seconds=config.request_timeout_seconds,
        transport=transport,
    )
