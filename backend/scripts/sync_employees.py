#!/usr/bin/env python3
"""
Workforce Sync - Pending Employee Sweep

Pushes every pending employee record (never created downstream, or modified
since creation) to the downstream HR API.

Usage:
    python scripts/sync_employees.py
    python scripts/sync_employees.py --limit 500

Exit code is 0 when the sweep ran, 1 when it could not run.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from workforce_sync.core.config import settings  # noqa: E402
from workforce_sync.core.logging_config import setup_logging  # noqa: E402
from workforce_sync.db.session import SessionLocal  # noqa: E402
from workforce_sync.downstream.client import DownstreamClient  # noqa: E402
from workforce_sync.services.employee_repository import EmployeeRepository  # noqa: E402
from workforce_sync.services.employee_sync_service import EmployeeSyncService  # noqa: E402

logger = logging.getLogger("workforce_sync.scripts.sync_employees")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sync pending employee records to the downstream HR API"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=settings.SYNC_BATCH_LIMIT,
        help=f"Maximum number of records to sync (default: {settings.SYNC_BATCH_LIMIT})",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Re-sync every record, not only pending ones (not supported)",
    )
    args = parser.parse_args(argv)
    if args.limit < 1:
        parser.error("--limit must be a positive integer")
    return args


def run_sweep(limit: int) -> int:
    """Run one pending sweep with a fresh session and client; returns the synced count."""
    db = SessionLocal()
    try:
        with DownstreamClient.from_settings() as client:
            service = EmployeeSyncService(EmployeeRepository(db), client)
            return service.sync_all_pending(limit)
    finally:
        db.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(service_name="workforce-sync-cli")

    if args.force:
        print("Force sync of all employees is not implemented; run without --force to sync pending records.")
        return 1

    print("Starting employee sync...")
    try:
        synced_count = run_sweep(args.limit)
    except Exception as e:
        logger.error(f"Employee sync failed: {e}", exc_info=True)
        print(f"Error during sync: {e}")
        return 1

    print(f"Successfully synced {synced_count} employees.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
