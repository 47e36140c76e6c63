#!/usr/bin/env python
"""Run a poll housekeeping sweep from the command line.

Useful for one-off cleanups and for checking what the scheduled sweep
would do before enabling it.

Usage:
    python backend/scripts/run_housekeeping.py [--dry-run] [--now 2024-05-01T02:00:00+00:00]

Options:
    --dry-run    Print the housekeeping report without modifying anything
    --now        Reference time (ISO 8601, default: current UTC time)

Environment Variables:
    DATABASE_URL: Database connection string
    HOUSEKEEPING_*: Thresholds (see config.py)
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from config import settings
from database import get_db_session
from housekeeping.exceptions import HousekeepingError
from housekeeping.service import HousekeepingService
from observability.logging_config import configure_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run a poll housekeeping sweep")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report what would be removed or soft-deleted",
    )
    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="Reference time in ISO 8601 (default: now, UTC)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Run the sweep (or the report) and print the result as JSON."""
    args = parse_args(argv)
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    now = args.now or datetime.now(timezone.utc)

    try:
        with get_db_session() as session:
            service = HousekeepingService(db=session)
            if args.dry_run:
                output = service.generate_report(now).model_dump(mode="json")
            else:
                statistics = service.run_sweep(now)
                output = statistics.to_result().model_dump(by_alias=True)
    except HousekeepingError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    main()
