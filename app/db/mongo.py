"""
app/db/mongo.py

Purpose: MongoDB connection setup

- Owns the Motor client with connection pooling
- Explicitly constructed by the process entry point and passed to services
- Health checks and retry logic
- Proper connection lifecycle management
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from typing import Optional
import asyncio
from app.core.config import Settings
from app.core.logging import get_logger

logger = get_logger(__name__)


USERS = "users"
CHANNEL_LINKS = "channel_links"
QUESTIONS = "questions"
QUESTION_PREFERENCES = "question_preferences"
DAILY_SEQUENCE_ENTRIES = "daily_sequence_entries"
PUSH_SUBSCRIPTIONS = "push_subscriptions"
ANSWERS = "answers"


class MongoDatabase:
    """
    Connection holder for one MongoDB database.

    Either call `connect()` (production) or pass an already constructed
    database object, e.g. an in-memory one in tests.
    """

    def __init__(self, settings: Settings, database: Optional[AsyncIOMotorDatabase] = None):
        self.settings = settings
        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = database

    async def connect(self, max_retries: int = 3, retry_delay: float = 2):
        """
        Establishes connection to MongoDB with retry logic.
        Called during application startup.
        """
        if self._client is not None:
            logger.warning("MongoDB client already initialized")
            return

        for attempt in range(1, max_retries + 1):
            try:
                logger.info(
                    f"Attempting to connect to MongoDB (attempt {attempt}/{max_retries})"
                )

                client = AsyncIOMotorClient(
                    self.settings.MONGODB_URL,
                    maxPoolSize=50,
                    minPoolSize=5,
                    serverSelectionTimeoutMS=5000,
                    connectTimeoutMS=10000,
                    retryWrites=True,
                    retryReads=True,
                    tz_aware=False,
                )

                await client.admin.command("ping")

                self._client = client
                self._database = client[self.settings.MONGODB_DB_NAME]

                logger.info(
                    f"✅ Successfully connected to MongoDB: {self.settings.MONGODB_DB_NAME}"
                )
                return

            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(
                    f"Failed to connect to MongoDB (attempt {attempt}/{max_retries}): {e}"
                )

                if attempt < max_retries:
                    logger.info(f"Retrying in {retry_delay} seconds...")
                    await asyncio.sleep(retry_delay)
                    retry_delay *= 2  # Exponential backoff
                else:
                    logger.critical("Failed to connect to MongoDB after all retries")
                    raise ConnectionError("Could not establish MongoDB connection") from e

    def close(self):
        """
        Closes the MongoDB connection.
        Called during application shutdown.
        """
        if self._client:
            logger.info("Closing MongoDB connection")
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")

    async def check_health(self) -> bool:
        """
        Checks if the database connection is healthy.

        Returns:
            True if connection is healthy, False otherwise
        """
        try:
            if self._database is None:
                logger.error("MongoDB database not initialized")
                return False

            await self._database.command("ping")
            return True

        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """
        Returns the MongoDB database instance.

        Raises:
            RuntimeError: If database is not initialized
        """
        if self._database is None:
            raise RuntimeError(
                "Database not initialized. Call connect() during startup."
            )
        return self._database

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self.db[name]

    @property
    def users(self) -> AsyncIOMotorCollection:
        """
        Fields: _id, display_name, username, first_name, last_name,
        active, state, state_updated_at, state_history, created_at, updated_at
        """
        return self.db[USERS]

    @property
    def channel_links(self) -> AsyncIOMotorCollection:
        """Fields: _id, user_id, kind, native_id, enabled, created_at"""
        return self.db[CHANNEL_LINKS]

    @property
    def questions(self) -> AsyncIOMotorCollection:
        """Fields: _id, text, options, active, created_at"""
        return self.db[QUESTIONS]

    @property
    def question_preferences(self) -> AsyncIOMotorCollection:
        """Fields: _id, user_id, question_id, enabled, created_at"""
        return self.db[QUESTION_PREFERENCES]

    @property
    def daily_sequence_entries(self) -> AsyncIOMotorCollection:
        """Fields: _id, user_id, question_id, day, sent_at, created_at"""
        return self.db[DAILY_SEQUENCE_ENTRIES]

    @property
    def push_subscriptions(self) -> AsyncIOMotorCollection:
        """Fields: _id, user_id, endpoint, p256dh, auth, user_agent, enabled, created_at, updated_at"""
        return self.db[PUSH_SUBSCRIPTIONS]

    @property
    def answers(self) -> AsyncIOMotorCollection:
        """Fields: _id, user_id, question_id, day, answer, created_at, updated_at"""
        return self.db[ANSWERS]
