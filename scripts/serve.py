from __future__ import annotations

import argparse

from hfv.api.main import serve
from hfv.config import settings


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the key-holding proxy API.")
    parser.add_argument("--host", default=settings.api_host, help="Interface to bind.")
    parser.add_argument("--port", type=int, default=settings.api_port, help="Port to listen on.")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only).")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    serve(host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
