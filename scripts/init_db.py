"""
Database initialization script

Run once to create collections and indexes:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.db.indexes import create_indexes
from app.db.mongo import (
    MongoDatabase,
    USERS,
    CHANNEL_LINKS,
    QUESTIONS,
    QUESTION_PREFERENCES,
    DAILY_SEQUENCE_ENTRIES,
    PUSH_SUBSCRIPTIONS,
    ANSWERS,
)

setup_logging()
logger = get_logger("scripts.init_db")

COLLECTIONS = [
    USERS,
    CHANNEL_LINKS,
    QUESTIONS,
    QUESTION_PREFERENCES,
    DAILY_SEQUENCE_ENTRIES,
    PUSH_SUBSCRIPTIONS,
    ANSWERS,
]


async def main():
    """Main initialization"""
    logger.info("=" * 60)
    logger.info("  Notimon Database Setup")
    logger.info("=" * 60)

    database = MongoDatabase(settings)
    await database.connect()

    try:
        await create_indexes(database)

        # ==================== VERIFICATION ====================
        logger.info("🔍 Verifying indexes...")
        for name in COLLECTIONS:
            indexes = await database.collection(name).index_information()
            logger.info(f"  {name}:")
            for index_name in indexes.keys():
                if index_name != "_id_":
                    logger.info(f"    ✅ {index_name}")

        # ==================== STATS ====================
        logger.info("📊 Current documents:")
        for name in COLLECTIONS:
            count = await database.collection(name).count_documents({})
            logger.info(f"  {name}: {count}")

        logger.info("✅ Database initialization complete!")

    finally:
        database.close()


if __name__ == "__main__":
    asyncio.run(main())
