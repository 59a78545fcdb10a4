"""
app/services/question_service.py

Purpose: Subscribed questions in sequencing order

- Enabled preferences joined with their (active) questions
- Ordered by question creation time, ties broken by id
- Subscribe / unsubscribe a user to a question
"""

from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from app.core.exceptions import ResourceNotFoundError
from app.core.logging import get_logger
from app.db.mongo import MongoDatabase
from app.models.question import Question, QuestionPreference

logger = get_logger(__name__)


class QuestionService:
    """Questions and per-user question preferences."""

    def __init__(self, database: MongoDatabase):
        self.database = database

    async def get_question(self, question_id: str) -> Optional[Question]:
        document = await self.database.questions.find_one({"_id": question_id})
        return Question.from_document(document) if document else None

    async def get_subscribed_questions(self, user_id: str) -> List[Question]:
        """
        The user's daily sequence: active questions with an enabled
        preference, in creation order.
        """
        cursor = self.database.question_preferences.find(
            {"user_id": user_id, "enabled": True},
            {"question_id": 1}
        )
        preferences = await cursor.to_list(length=None)
        question_ids = [preference["question_id"] for preference in preferences]
        if not question_ids:
            return []

        cursor = self.database.questions.find(
            {"_id": {"$in": question_ids}, "active": True}
        ).sort([("created_at", 1), ("_id", 1)])
        documents = await cursor.to_list(length=None)
        return [Question.from_document(document) for document in documents]

    async def get_subscribed_question(self, user_id: str, question_id: str) -> Optional[Question]:
        """The question, if it is active and the user has it enabled."""
        preference = await self.database.question_preferences.find_one(
            {"user_id": user_id, "question_id": question_id, "enabled": True}
        )
        if preference is None:
            return None
        document = await self.database.questions.find_one({"_id": question_id, "active": True})
        return Question.from_document(document) if document else None

    async def count_enabled_preferences(self, user_id: str) -> int:
        return await self.database.question_preferences.count_documents(
            {"user_id": user_id, "enabled": True}
        )

    async def subscribe(self, user_id: str, question_id: str) -> QuestionPreference:
        """
        Enables the user's preference for an active question, creating it if needed.

        Raises:
            ResourceNotFoundError: Unknown or inactive question
        """
        question = await self.database.questions.find_one({"_id": question_id, "active": True})
        if question is None:
            raise ResourceNotFoundError("Question not found", details={"question_id": question_id})

        now = datetime.utcnow()
        await self.database.question_preferences.update_one(
            {"user_id": user_id, "question_id": question_id},
            {
                "$set": {"enabled": True, "updated_at": now},
                "$setOnInsert": {"_id": uuid4().hex, "created_at": now},
            },
            upsert=True
        )
        logger.info(f"Subscribed to question {question_id}", extra={"user_id": user_id})
        return QuestionPreference(user_id=user_id, question_id=question_id, enabled=True)

    async def unsubscribe(self, user_id: str, question_id: str) -> bool:
        """Disables the preference; returns False if the user was never subscribed."""
        result = await self.database.question_preferences.update_one(
            {"user_id": user_id, "question_id": question_id},
            {"$set": {"enabled": False, "updated_at": datetime.utcnow()}}
        )
        return result.matched_count > 0
