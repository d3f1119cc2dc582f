from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final, Tuple

from dotenv import load_dotenv

load_dotenv()


def _parse_codes(raw: str) -> Tuple[str, ...]:
    return tuple(token.strip().upper() for token in raw.split(",") if token.strip())


@dataclass(slots=True)
class Settings:
    """Central configuration driven by environment variables."""

    cmc_api_key: str = os.getenv("CMC_API_KEY", "")
    cmc_base_url: str = os.getenv("CMC_BASE_URL", "https://pro-api.coinmarketcap.com")
    default_convert: str = os.getenv("DEFAULT_CONVERT", "USD").upper()
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "15"))

    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    dashboard_api_base_url: str | None = os.getenv("API_BASE_URL")

    poll_interval_seconds: float = float(os.getenv("POLL_INTERVAL_SECONDS", "90"))
    markets_limit: int = int(os.getenv("MARKETS_LIMIT", "100"))
    exchanges_limit: int = int(os.getenv("EXCHANGES_LIMIT", "200"))
    supported_currencies: Tuple[str, ...] = _parse_codes(os.getenv("SUPPORTED_CURRENCIES", "USD,GBP,EUR"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def resolved_api_base_url(self) -> str:
        if self.dashboard_api_base_url:
            return self.dashboard_api_base_url.rstrip("/")
        return f"http://{self.api_host}:{self.api_port}"

    @property
    def has_api_key(self) -> bool:
        return bool(self.cmc_api_key.strip())

    def public_view(self) -> dict:
        """Settings safe to log or return to clients (the upstream key is never included)."""
        return {
            "cmc_base_url": self.cmc_base_url,
            "default_convert": self.default_convert,
            "request_timeout_seconds": self.request_timeout_seconds,
            "poll_interval_seconds": self.poll_interval_seconds,
            "markets_limit": self.markets_limit,
            "exchanges_limit": self.exchanges_limit,
            "supported_currencies": list(self.supported_currencies),
            "upstream_key_configured": self.has_api_key,
        }


# Singleton-style settings import
settings: Final[Settings] = Settings()
