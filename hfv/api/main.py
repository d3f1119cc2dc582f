from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from hfv.config import settings
from hfv.models import HealthStatus
from hfv.proxy.handlers import HANDLERS, ProxyResult
from hfv.upstream.client import CoinMarketCapClient, build_client

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _to_response(result: ProxyResult) -> Response:
    return Response(content=result.body, status_code=result.status_code, media_type=result.media_type)


def create_app(client_factory: Callable[[], CoinMarketCapClient] = build_client) -> FastAPI:
    """Build the proxy service; one upstream client lives for the app's lifetime."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting HFV proxy: %s", settings.public_view())
        app.state.upstream = client_factory()
        try:
            yield
        finally:
            await app.state.upstream.aclose()
            logger.info("HFV proxy stopped")

    app = FastAPI(
        title="HFV Market Proxy",
        version="0.1.0",
        description="Latest-only market data proxy; the upstream API key stays on the server.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthStatus)
    async def health() -> HealthStatus:
        return HealthStatus(upstream_key_configured=settings.has_api_key)

    # Query strings go to the handlers untouched so their own 400s apply.
    @app.get("/api/coin")
    async def coin(request: Request) -> Response:
        result = await HANDLERS["coin"](dict(request.query_params), request.app.state.upstream)
        return _to_response(result)

    @app.get("/api/exchanges")
    async def exchanges(request: Request) -> Response:
        result = await HANDLERS["exchanges"](dict(request.query_params), request.app.state.upstream)
        return _to_response(result)

    @app.get("/api/global")
    async def global_metrics(request: Request) -> Response:
        result = await HANDLERS["global"](dict(request.query_params), request.app.state.upstream)
        return _to_response(result)

    @app.get("/api/markets")
    async def markets(request: Request) -> Response:
        result = await HANDLERS["markets"](dict(request.query_params), request.app.state.upstream)
        return _to_response(result)

    return app


app = create_app()


def serve(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False) -> None:
    """Run the proxy under uvicorn on ``API_HOST``/``API_PORT`` unless overridden."""
    host = host or settings.api_host
    port = port or settings.api_port
    logger.info("Serving proxy on %s:%s", host, port)
    uvicorn.run("hfv.api.main:app", host=host, port=port, reload=reload, log_level=settings.log_level.lower())
