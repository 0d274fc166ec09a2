#!/usr/bin/env python3
"""
Run correlation analysis for users and store the results.
Run: python scripts/run_correlation_analysis.py [user_id ...] [--lookback-days N]
"""
import sys
import os
import argparse
import asyncio
import logging

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import configure_logging
from database import init_db, get_db_context
import models
from services import analysis_service


logger = logging.getLogger(__name__)


async def run(user_ids, lookback_days=None):
    """Analyze each user in its own transaction"""
    if not user_ids:
        with get_db_context() as db:
            user_ids = [u.id for u in db.query(models.User).order_by(models.User.id).all()]

    stored = 0
    for user_id in user_ids:
        results = await analysis_service.run_correlation_analysis(
            user_id, lookback_days=lookback_days
        )
        stored += len(results)

    logger.info(f"Correlation analysis finished: {len(user_ids)} users, {stored} results stored")
    return stored


def main():
    parser = argparse.ArgumentParser(
        description="Analyze medication/metric correlations and store the results"
    )
    parser.add_argument(
        "user_ids",
        nargs="*",
        type=int,
        help="Users to analyze (default: every user)"
    )
    parser.add_argument(
        "--lookback-days",
        type=int,
        default=None,
        help="Trailing days to analyze"
    )

    args = parser.parse_args()

    configure_logging()
    init_db()
    asyncio.run(run(args.user_ids, args.lookback_days))


if __name__ == "__main__":
    main()
