#!/usr/bin/env python3
"""
Pull Airtable prediction records into the local store.

Upserts every record by Airtable id, creates any missing categories, and
recomputes stats for each user touched. Exits 0 on success, 1 on failure.

Usage:
    python scripts/sync_airtable.py [OPTIONS]

Options:
    --dry-run            Fetch and map records, report counts, write nothing
    --recalculate-all    Skip the pull; recompute stats for every user
    -h, --help           Show this help message
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections import Counter
from pathlib import Path

# Ensure project root is on sys.path for guessometer.* imports
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from guessometer.api.services.stats_service import StatsService, StatsUnavailableError
from guessometer.db.models import User
from guessometer.db.postgres import close_db, get_session_factory, init_db
from guessometer.logging_config import setup_logging
from guessometer.settings import get_settings
from guessometer.sync.airtable import (
    AirtableClient,
    AirtableError,
    pull_predictions,
    record_to_prediction_data,
)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import Airtable prediction records and refresh user stats.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and map records, report counts, write nothing",
    )
    parser.add_argument(
        "--recalculate-all",
        action="store_true",
        help="Skip the pull; recompute stats for every user",
    )
    return parser.parse_args()


async def _recalculate_all(logger: logging.Logger) -> int:
    factory = get_session_factory()
    async with factory() as session:
        user_ids = (await session.execute(select(User.id))).scalars().all()
        stats = StatsService(session)
        failed = 0
        for user_id in user_ids:
            try:
                await stats.calculate_user_stats(user_id)
            except StatsUnavailableError as exc:
                logger.error("Recompute failed for %s: %s", user_id, exc)
                failed += 1
    logger.info("Recomputed stats for %d users (%d failed)", len(user_ids) - failed, failed)
    return 1 if failed else 0


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    logger = logging.getLogger(__name__)

    init_db()
    try:
        if args.recalculate_all:
            return await _recalculate_all(logger)

        if not settings.airtable_enabled:
            logger.critical("AIRTABLE_TOKEN and AIRTABLE_BASE_ID must be set")
            return 1

        client = AirtableClient.from_settings(settings)
        try:
            if args.dry_run:
                records = await client.list_records()
                outcomes = Counter(record_to_prediction_data(r)["outcome"] for r in records)
                logger.info(
                    "Dry run: %d records (%s)",
                    len(records),
                    ", ".join(f"{k}={v}" for k, v in sorted(outcomes.items())),
                )
                return 0

            async with get_session_factory()() as session:
                summary = await pull_predictions(client, session)
        finally:
            await client.close()

        logger.info(
            "Import complete: %d created, %d updated, %d skipped, %d users",
            summary.created,
            summary.updated,
            summary.skipped,
            len(summary.users_touched),
        )
        return 0
    except (AirtableError, SQLAlchemyError, StatsUnavailableError) as exc:
        logger.error("Airtable sync failed: %s", exc)
        return 1
    finally:
        await close_db()


def main() -> None:
    args = _parse_args()
    exit_code = asyncio.run(_run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
