#!/usr/bin/env python3
"""Pull employees from the DTR API into the front-desk employee store.

Run from the backend/ directory:

    python3 scripts/sync_employees.py [--dry-run] [--batch-size N] [--deactivate-missing] [--verbose]

Every DTR employee is upserted as active. With --deactivate-missing, stored
employees that no longer appear in the DTR feed are marked inactive so they
drop out of employee search.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Any

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from pydantic import ValidationError  # noqa: E402

from app.core.config import Settings  # noqa: E402
from app.models.employee import SyncEmployeeRecord  # noqa: E402
from app.services.dtr_client import DtrApiClient  # noqa: E402
from app.services.employee_service import EmployeeService  # noqa: E402

logger = logging.getLogger(__name__)


def build_sync_records(rows: list[dict[str, Any]]) -> tuple[list[SyncEmployeeRecord], int]:
    """Validate raw DTR rows, returning the usable records and the number skipped."""
    records: list[SyncEmployeeRecord] = []
    skipped = 0
    for row in rows:
        try:
            records.append(SyncEmployeeRecord.model_validate(row))
        except ValidationError:
            logger.warning("Skipping malformed DTR employee row (id=%r)", row.get("id"))
            skipped += 1
    return records, skipped


def batched(records: list[SyncEmployeeRecord], batch_size: int) -> list[list[SyncEmployeeRecord]]:
    return [records[i : i + batch_size] for i in range(0, len(records), batch_size)]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sync employees from the DTR API into the front-desk employee store",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and validate employees without writing to the store",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=50,
        help="Number of employees per upsert batch (default: 50)",
    )
    parser.add_argument(
        "--deactivate-missing",
        action="store_true",
        help="Mark stored employees absent from the DTR feed as inactive",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    args = parser.parse_args(argv)
    if args.batch_size < 1:
        parser.error("--batch-size must be at least 1")
    return args


async def sync(
    args: argparse.Namespace,
    dtr: DtrApiClient,
    store: EmployeeService,
) -> dict[str, int]:
    logger.info("Fetching employees from DTR API...")
    rows = await dtr.list_employees()
    records, skipped = build_sync_records(rows)
    logger.info("Fetched %d employees (%d skipped)", len(records), skipped)

    summary = {"synced": 0, "skipped": skipped, "deactivated": 0}
    if args.dry_run:
        logger.info("[DRY RUN] No employees were written.")
        return summary

    batches = batched(records, args.batch_size)
    for batch_idx, batch in enumerate(batches):
        summary["synced"] += await store.upsert_employees(batch)
        logger.info("Batch %d/%d: %d employees upserted", batch_idx + 1, len(batches), len(batch))

    if args.deactivate_missing:
        if records:
            summary["deactivated"] = await store.deactivate_missing({r.id for r in records})
        else:
            logger.warning("DTR returned no employees — skipping deactivation")

    return summary


async def run(args: argparse.Namespace) -> dict[str, int]:
    settings = Settings()
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    dtr = DtrApiClient()
    store = EmployeeService()
    await dtr.initialize(settings)
    await store.initialize(settings)
    if not dtr.initialized:
        raise SystemExit("DTR_API_BASE_URL and DTR_API_TOKEN must be set")
    if not store.initialized and not args.dry_run:
        raise SystemExit("COSMOS_DB_ENDPOINT and COSMOS_DB_KEY must be set")

    try:
        summary = await sync(args, dtr, store)
    finally:
        await store.close()
        await dtr.close()

    logger.info("=" * 50)
    logger.info("Employee sync complete!")
    logger.info("Synced: %d", summary["synced"])
    logger.info("Skipped: %d", summary["skipped"])
    logger.info("Deactivated: %d", summary["deactivated"])
    return summary


def main() -> None:
    args = parse_args()
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
