from __future__ import annotations

import logging
from typing import Any

import requests

from hfv.config import settings

logger = logging.getLogger(__name__)


class ProxyCallError(RuntimeError):
    """Non-2xx answer from the proxy; the message is ``"{status} {body}"``."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"{status_code} {body}")
        self.status_code = status_code
        self.body = body


class ProxyClient:
    """Calls the proxy endpoints only; the dashboard never talks to the upstream directly.

    Each call is a standalone ``requests.get`` so controllers may fetch from
    several worker threads at once.
    """

    def __init__(
        self,
        base_url: str = settings.resolved_api_base_url,
        timeout_seconds: float = settings.request_timeout_seconds,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def call(self, name: str, **params: Any) -> Any:
        if not name:
            raise ValueError("proxy call: missing endpoint name")
        url = f"{self.base_url}/api/{name}"
        logger.debug("calling %s %s", url, params)
        resp = requests.get(
            url,
            params={k: str(v) for k, v in params.items()},
            headers={"Accept": "application/json"},
            timeout=self.timeout_seconds,
        )
        if not resp.ok:
            raise ProxyCallError(resp.status_code, resp.text)
        return resp.json()
