"""
Sweep Orphaned Placeholders Script

Re-enqueues AI placeholders that have been pending longer than the grace
period without a generation job in flight. Run from cron, or schedule the
`gemini_chat.infrastructure.queue.tasks.sweep_orphans` task instead.

Usage:
    cd backend
    python scripts/sweep_orphans.py [--grace-seconds 300]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gemini_chat.config.settings import settings
from gemini_chat.infrastructure.db.database import close_db, init_db
from gemini_chat.infrastructure.queue.generation_queue import GenerationQueue
from gemini_chat.infrastructure.services.orphan_sweeper import OrphanSweeper

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def run_sweep(grace_seconds: int) -> int:
    """Run one sweep pass; returns the number of placeholders that could not be re-enqueued."""
    sweep_settings = settings.model_copy(update={"sweep_grace_seconds": grace_seconds})
    db = await init_db()
    queue = GenerationQueue.from_url(settings.redis_url, settings=sweep_settings)

    try:
        sweeper = OrphanSweeper(db.session_factory, queue, sweep_settings)
        report = await sweeper.sweep()
    finally:
        queue.queue.connection.close()
        await close_db()

    logger.info(f"Requeued {report.requeued} of {report.scanned} stale placeholders")
    return report.failed


def main():
    parser = argparse.ArgumentParser(description="Re-enqueue orphaned AI placeholders")
    parser.add_argument(
        "--grace-seconds",
        type=int,
        default=settings.sweep_grace_seconds,
        help="Minimum placeholder age before it is considered orphaned",
    )
    args = parser.parse_args()

    failed = asyncio.run(run_sweep(args.grace_seconds))
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
