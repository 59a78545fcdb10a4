"""
Runs one daily broadcast from the command line (cron entry point)

    python scripts/send_daily_questions.py
"""

import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx

from app.core.config import settings, validate_settings
from app.core.container import build_container
from app.core.logging import setup_logging, get_logger
from app.db.mongo import MongoDatabase

setup_logging()
logger = get_logger("scripts.send_daily_questions")


async def main() -> int:
    validate_settings()

    database = MongoDatabase(settings)
    await database.connect()

    try:
        async with httpx.AsyncClient(timeout=settings.TRANSPORT_TIMEOUT_SECONDS) as client:
            container = build_container(database, settings, client=client)
            summary = await container.scheduler.run_daily_broadcast()
    finally:
        database.close()

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except Exception as e:
        logger.critical(f"Daily broadcast aborted: {e}", exc_info=True)
        sys.exit(1)
