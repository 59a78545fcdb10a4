"""
app/db/indexes.py

Purpose: Database index management

- Creates unique indexes that back the idempotency guarantees
- Performance indexes for the daily broadcast queries
"""

from pymongo import ASCENDING, DESCENDING

from app.db.mongo import MongoDatabase
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes(database: MongoDatabase):
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        logger.info("Creating database indexes...")

        # ==============================================
        # USERS
        # ==============================================

        await database.users.create_index("active", name="active_idx")
        logger.debug("Created index on users.active")

        # ==============================================
        # CHANNEL LINKS
        # ==============================================

        # One native identity maps to at most one user
        await database.channel_links.create_index(
            [("kind", ASCENDING), ("native_id", ASCENDING)],
            unique=True,
            name="channel_identity_unique"
        )
        await database.channel_links.create_index(
            [("user_id", ASCENDING), ("enabled", ASCENDING)],
            name="user_links_idx"
        )
        logger.debug("Created indexes on channel_links")

        # ==============================================
        # QUESTIONS AND PREFERENCES
        # ==============================================

        await database.questions.create_index(
            [("created_at", ASCENDING), ("_id", ASCENDING)],
            name="question_order_idx"
        )
        await database.question_preferences.create_index(
            [("user_id", ASCENDING), ("question_id", ASCENDING)],
            unique=True,
            name="user_question_unique"
        )
        logger.debug("Created indexes on questions and question_preferences")

        # ==============================================
        # DAILY SEQUENCE LEDGER
        # ==============================================

        # The upsert in mark_sent relies on this constraint
        await database.daily_sequence_entries.create_index(
            [("user_id", ASCENDING), ("question_id", ASCENDING), ("day", ASCENDING)],
            unique=True,
            name="user_question_day_unique"
        )
        await database.daily_sequence_entries.create_index(
            [("user_id", ASCENDING), ("day", ASCENDING), ("sent_at", DESCENDING)],
            name="user_day_sent_idx"
        )
        logger.debug("Created indexes on daily_sequence_entries")

        # ==============================================
        # PUSH SUBSCRIPTIONS
        # ==============================================

        await database.push_subscriptions.create_index(
            [("user_id", ASCENDING), ("endpoint", ASCENDING)],
            unique=True,
            name="user_endpoint_unique"
        )
        await database.push_subscriptions.create_index("endpoint", name="endpoint_idx")
        logger.debug("Created indexes on push_subscriptions")

        # ==============================================
        # ANSWERS
        # ==============================================

        # One answer per user, question and day
        await database.answers.create_index(
            [("user_id", ASCENDING), ("question_id", ASCENDING), ("day", ASCENDING)],
            unique=True,
            name="answer_user_question_day_unique"
        )
        await database.answers.create_index(
            [("user_id", ASCENDING), ("day", ASCENDING)],
            name="answer_user_day_idx"
        )
        logger.debug("Created indexes on answers")

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise
