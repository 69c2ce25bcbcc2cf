"""
Retry deletion of remote assets that no document references any more.

Compensating deletes that fail during a request are recorded in the
``orphaned_assets`` collection; this script works through that backlog,
once or on an interval.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_backend.assets import sweep_orphans
from portfolio_backend.config import get_settings
from portfolio_backend.dependencies import build_storage, build_store

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Orphaned asset cleanup")
    parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=0,
        help="Process at most N records per run (0 for all)",
    )
    parser.add_argument(
        "--interval-seconds",
        type=int,
        default=0,
        help="Seconds between runs (0 runs once and exits)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    settings = get_settings()
    store = build_store(settings)
    storage = build_storage(settings)
    try:
        while True:
            deleted, failed = sweep_orphans(store, storage, limit=args.limit or None)
            logger.info("Orphan cleanup: deleted=%d failed=%d", deleted, failed)
            if args.interval_seconds <= 0:
                return 1 if failed else 0
            time.sleep(args.interval_seconds)
    except KeyboardInterrupt:
        logger.info("Stopping orphan cleanup")
        return 0
    finally:
        store.close()
        storage.close()


if __name__ == "__main__":
    raise SystemExit(main())
