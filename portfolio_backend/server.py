"""
Run the portfolio backend with uvicorn.

    python -m portfolio_backend.server --port 4000
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from portfolio_backend.app import create_app


def main() -> int:
    parser = argparse.ArgumentParser(description="Serve the portfolio API.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=4000)
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
