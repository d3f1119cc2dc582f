from __future__ import annotations

import argparse
import asyncio
import logging

from hfv.config import settings
from hfv.dashboard.client import ProxyClient
from hfv.dashboard.controller import ViewStatus
from hfv.dashboard.formatting import format_percent, format_price
from hfv.dashboard.views import filter_quotes, markets_view

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Headless market watch that polls the running proxy.")
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.poll_interval_seconds,
        help="Seconds between polls (default: POLL_INTERVAL_SECONDS).",
    )
    parser.add_argument("--convert", default=settings.default_convert, help="Target currency code.")
    parser.add_argument("--top", type=int, default=10, help="Rows to log after each poll.")
    parser.add_argument("--query", default="", help="Local name/symbol filter.")
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    proxy = ProxyClient()
    controller = markets_view(proxy, args.convert, interval_seconds=args.interval)
    logger.info("Watching %s markets via %s every %ss", args.convert.upper(), proxy.base_url, args.interval)

    controller.mount()
    last_seen = None
    try:
        while True:
            await asyncio.sleep(0.5)
            snap = controller.snapshot
            if snap.updated_at is None or snap.updated_at == last_seen:
                continue
            last_seen = snap.updated_at
            if snap.status is ViewStatus.ERROR:
                logger.error("Poll failed: %s", snap.error)
                continue
            for item in filter_quotes(snap.data or [], args.query)[: args.top]:
                logger.info(
                    "%-8s %-24s %18s %9s",
                    item.symbol,
                    item.name,
                    format_price(item.price, args.convert),
                    format_percent(item.percent_change_24h),
                )
    finally:
        controller.unmount()


if __name__ == "__main__":
    asyncio.run(main())
