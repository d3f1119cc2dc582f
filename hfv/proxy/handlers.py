"""Stateless proxy handlers between the dashboard and the upstream provider.

Each handler takes the caller's query parameters plus an upstream client and
returns a :class:`ProxyResult`. Handlers never raise: input problems become a
400, upstream failures are relayed with their original status and body, and
anything unexpected becomes a 500 carrying the exception text.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from hfv.config import Settings, settings
from hfv.upstream.client import MarketDataUpstream

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"


@dataclass(frozen=True)
class ProxyResult:
    status_code: int
    body: str
    media_type: str = JSON_MEDIA_TYPE

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @classmethod
    def json(cls, payload: Any, status_code: int = 200) -> "ProxyResult":
        return cls(status_code=status_code, body=json.dumps(payload), media_type=JSON_MEDIA_TYPE)

    @classmethod
    def text(cls, body: str, status_code: int) -> "ProxyResult":
        return cls(status_code=status_code, body=body, media_type=TEXT_MEDIA_TYPE)

    @classmethod
    def relay(cls, resp: httpx.Response) -> "ProxyResult":
        """Pass an upstream response through untouched (status and raw body text)."""
        return cls(
            status_code=resp.status_code,
            body=resp.text,
            media_type=resp.headers.get("content-type", TEXT_MEDIA_TYPE),
        )


def _convert_param(params: Mapping[str, str], config: Settings) -> str:
    return (params.get("convert") or config.default_convert).upper()


def _int_param(params: Mapping[str, str], key: str, default: int) -> int:
    raw = params.get(key)
    if raw is None or str(raw).strip() == "":
        return default
    return int(raw)


def _first_for_symbol(payload: Any, symbol: str) -> Optional[Any]:
    """``payload["data"][symbol][0]`` or None when the symbol is absent."""
    data = payload.get("data") if isinstance(payload, Mapping) else None
    if not isinstance(data, Mapping):
        return None
    entries = data.get(symbol)
    if isinstance(entries, list):
        return entries[0] if entries else None
    # v1-style responses key a single object by symbol
    return entries if isinstance(entries, Mapping) else None


def _data_or_relay(resp: httpx.Response) -> ProxyResult:
    """JSON of the upstream ``data`` payload on success, the raw upstream body otherwise."""
    if not resp.is_success:
        return ProxyResult.relay(resp)
    payload = json.loads(resp.text)
    return ProxyResult.json(payload.get("data"), status_code=resp.status_code)


async def coin_handler(
    params: Mapping[str, str],
    upstream: MarketDataUpstream,
    config: Settings = settings,
) -> ProxyResult:
    """Metadata and latest quote for one symbol, fetched concurrently."""
    try:
        symbol = params.get("symbol")
        if not symbol:
            return ProxyResult.text("symbol required", status_code=400)
        convert = _convert_param(params, config)

        info_resp, quote_resp = await asyncio.gather(
            upstream.info(symbol),
            upstream.quotes(symbol, convert),
        )

        if not info_resp.is_success:
            return ProxyResult.relay(info_resp)
        if not quote_resp.is_success:
            return ProxyResult.relay(quote_resp)

        return ProxyResult.json(
            {
                "info": _first_for_symbol(info_resp.json(), symbol),
                "quote": _first_for_symbol(quote_resp.json(), symbol),
            }
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("coin lookup failed")
        return ProxyResult.text(str(exc), status_code=500)


async def exchanges_handler(
    params: Mapping[str, str],
    upstream: MarketDataUpstream,
    config: Settings = settings,
) -> ProxyResult:
    try:
        resp = await upstream.exchanges(start=1, limit=config.exchanges_limit)
        return _data_or_relay(resp)
    except Exception as exc:  # noqa: BLE001
        logger.exception("exchange listing failed")
        return ProxyResult.text(str(exc), status_code=500)


async def global_metrics_handler(
    params: Mapping[str, str],
    upstream: MarketDataUpstream,
    config: Settings = settings,
) -> ProxyResult:
    try:
        resp = await upstream.global_metrics(_convert_param(params, config))
        return _data_or_relay(resp)
    except Exception as exc:  # noqa: BLE001
        logger.exception("global metrics failed")
        return ProxyResult.text(str(exc), status_code=500)


async def markets_handler(
    params: Mapping[str, str],
    upstream: MarketDataUpstream,
    config: Settings = settings,
) -> ProxyResult:
    """Paginated asset listings priced in the requested currency."""
    try:
        try:
            start = _int_param(params, "start", 1)
            limit = _int_param(params, "limit", config.markets_limit)
        except ValueError:
            return ProxyResult.text("start and limit must be integers", status_code=400)
        resp = await upstream.listings(start=start, limit=limit, convert=_convert_param(params, config))
        return _data_or_relay(resp)
    except Exception as exc:  # noqa: BLE001
        logger.exception("market listings failed")
        return ProxyResult.text(str(exc), status_code=500)


HANDLERS = {
    "coin": coin_handler,
    "exchanges": exchanges_handler,
    "global": global_metrics_handler,
    "markets": markets_handler,
}
