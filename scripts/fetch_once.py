from __future__ import annotations

import argparse
import asyncio
import logging

from hfv.config import settings
from hfv.proxy.handlers import HANDLERS
from hfv.upstream.client import build_client

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Call one proxy handler against the upstream API and print the result.")
    parser.add_argument("endpoint", choices=sorted(HANDLERS), help="Proxy handler to run.")
    parser.add_argument("--symbol", help="Asset symbol (required by the coin handler).")
    parser.add_argument("--convert", default=settings.default_convert, help="Target currency code.")
    parser.add_argument("--limit", type=int, help="Page size for the markets handler.")
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    params = {"convert": args.convert}
    if args.symbol:
        params["symbol"] = args.symbol
    if args.limit is not None:
        params["limit"] = str(args.limit)

    async with build_client() as client:
        result = await HANDLERS[args.endpoint](params, client)

    logger.info("%s -> %s (%s)", args.endpoint, result.status_code, result.media_type)
    print(result.body)


if __name__ == "__main__":
    asyncio.run(main())
