from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import API_KEY, exchanges_payload, global_payload, info_payload, listings_payload, quotes_payload
from hfv.api import main as api_main
from hfv.api.main import create_app
from hfv.upstream.client import (
    EXCHANGES_PATH,
    GLOBAL_METRICS_PATH,
    INFO_PATH,
    LISTINGS_PATH,
    QUOTES_PATH,
    CoinMarketCapClient,
)


@pytest.fixture()
def api_client():
    state = {"routes": {}, "calls": 0, "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["calls"] += 1
        state["requests"].append(request)
        return state["routes"][request.url.path]

    app = create_app(
        lambda: CoinMarketCapClient(
            api_key=API_KEY,
            base_url="https://upstream.test",
            transport=httpx.MockTransport(handler),
        )
    )
    with TestClient(app) as client:
        yield client, state


def test_coin_route_without_symbol_is_plain_400(api_client):
    client, state = api_client
    resp = client.get("/api/coin")

    assert resp.status_code == 400
    assert resp.text == "symbol required"
    assert state["calls"] == 0


def test_coin_route_returns_envelope(api_client):
    client, state = api_client
    state["routes"] = {
        INFO_PATH: httpx.Response(200, json=info_payload("ETH")),
        QUOTES_PATH: httpx.Response(200, json=quotes_payload("ETH")),
    }
    resp = client.get("/api/coin", params={"symbol": "ETH"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    body = resp.json()
    assert body["info"]["symbol"] == "ETH"
    assert body["quote"]["symbol"] == "ETH"


def test_exchanges_route_relays_raw_failure(api_client):
    client, state = api_client
    state["routes"] = {EXCHANGES_PATH: httpx.Response(503, text="rate limited")}
    resp = client.get("/api/exchanges")

    assert resp.status_code == 503
    assert resp.text == "rate limited"


def test_exchanges_route_returns_data_only(api_client):
    client, state = api_client
    state["routes"] = {EXCHANGES_PATH: httpx.Response(200, json={"status": {}, "data": exchanges_payload()})}
    resp = client.get("/api/exchanges")

    assert resp.status_code == 200
    assert resp.json() == exchanges_payload()


def test_global_route_relays_raw_failure(api_client):
    client, state = api_client
    state["routes"] = {GLOBAL_METRICS_PATH: httpx.Response(503, text="rate limited")}
    resp = client.get("/api/global", params={"convert": "eur"})

    assert resp.status_code == 503
    assert resp.text == "rate limited"


def test_global_route_returns_data_only(api_client):
    client, state = api_client
    state["routes"] = {GLOBAL_METRICS_PATH: httpx.Response(200, json={"status": {}, "data": global_payload("EUR")})}
    resp = client.get("/api/global", params={"convert": "eur"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == global_payload("EUR")
    assert state["requests"][0].url.params["convert"] == "EUR"


def test_markets_route_forwards_paging_and_currency(api_client):
    client, state = api_client
    state["routes"] = {LISTINGS_PATH: httpx.Response(200, json={"data": listings_payload("GBP")})}
    resp = client.get("/api/markets", params={"start": "1", "limit": "25", "convert": "gbp"})

    assert resp.status_code == 200
    assert [row["symbol"] for row in resp.json()] == ["BTC", "ETH", "SOL"]
    params = state["requests"][0].url.params
    assert (params["start"], params["limit"], params["convert"]) == ("1", "25", "GBP")


def test_markets_route_relays_raw_failure(api_client):
    client, state = api_client
    state["routes"] = {LISTINGS_PATH: httpx.Response(503, text="rate limited")}
    resp = client.get("/api/markets")

    assert resp.status_code == 503
    assert resp.text == "rate limited"


def test_health_never_exposes_key(api_client):
    client, _ = api_client
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert API_KEY not in resp.text


def test_upstream_key_not_leaked_in_error_bodies(api_client):
    client, state = api_client
    state["routes"] = {
        INFO_PATH: httpx.Response(401, text="API key missing"),
        QUOTES_PATH: httpx.Response(401, text="API key missing"),
    }
    resp = client.get("/api/coin", params={"symbol": "BTC"})

    assert resp.status_code == 401
    assert API_KEY not in resp.text


def test_serve_runs_uvicorn_on_configured_address(monkeypatch):
    launched = {}
    monkeypatch.setattr(api_main.uvicorn, "run", lambda target, **kwargs: launched.update(target=target, **kwargs))
    monkeypatch.setattr(api_main.settings, "api_host", "127.0.0.1")
    monkeypatch.setattr(api_main.settings, "api_port", 8123)

    api_main.serve()

    assert launched["target"] == "hfv.api.main:app"
    assert (launched["host"], launched["port"], launched["reload"]) == ("127.0.0.1", 8123, False)
