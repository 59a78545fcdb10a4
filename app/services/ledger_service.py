"""
app/services/ledger_service.py

Purpose: Daily sequence ledger

- Records which question was sent to which user on which calendar day
- The absence of an entry is the only signal that a question is pending
- Idempotent marking backed by the unique (user_id, question_id, day) index
"""

from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from pymongo.errors import DuplicateKeyError

from app.core.logging import get_logger, LogContext
from app.db.mongo import MongoDatabase
from app.models.question import Question
from app.models.sequence import DailySequenceEntry
from app.services.question_service import QuestionService

logger = get_logger(__name__)


class SequenceLedger:
    """
    Authority for "what's next" per user and day.
    """

    def __init__(self, database: MongoDatabase, questions: QuestionService):
        self.database = database
        self.questions = questions

    async def _sent_question_ids(self, user_id: str, day: str) -> set:
        cursor = self.database.daily_sequence_entries.find(
            {"user_id": user_id, "day": day},
            {"question_id": 1}
        )
        return {entry["question_id"] for entry in await cursor.to_list(length=None)}

    async def pending_questions(self, user_id: str, day: str) -> List[Question]:
        """
        Subscribed questions without an entry for `day`, in sequence order.
        """
        subscribed = await self.questions.get_subscribed_questions(user_id)
        if not subscribed:
            return []
        sent = await self._sent_question_ids(user_id, day)
        return [question for question in subscribed if question.id not in sent]

    async def find_next_pending(self, user_id: str, day: str) -> Optional[Question]:
        """
        Returns the earliest subscribed question not yet sent on `day`,
        or None when the sequence is empty or fully delivered.

        Repeated calls propose the same question until it is marked sent.
        """
        pending = await self.pending_questions(user_id, day)
        return pending[0] if pending else None

    async def mark_sent(self, user_id: str, question_id: str, day: str) -> DailySequenceEntry:
        """
        Upserts the entry for (user_id, question_id, day).
        Marking twice keeps a single entry and only refreshes sent_at.
        """
        with LogContext(user_id=user_id, question_id=question_id, day=day):
            key = {"user_id": user_id, "question_id": question_id, "day": day}
            now = datetime.utcnow()
            update = {
                "$set": {"sent_at": now},
                "$setOnInsert": {"_id": uuid4().hex, "created_at": now},
            }

            try:
                await self.database.daily_sequence_entries.update_one(key, update, upsert=True)
            except DuplicateKeyError:
                # Two upserts raced on insert; the loser becomes a plain update
                await self.database.daily_sequence_entries.update_one(key, {"$set": {"sent_at": now}})

            logger.debug("Ledger entry marked sent")
            document = await self.database.daily_sequence_entries.find_one(key)
            return DailySequenceEntry.from_document(document)

    async def has_active_sequence(self, user_id: str, day: str) -> bool:
        """At least one question has already been sent to the user on `day`."""
        entry = await self.database.daily_sequence_entries.find_one({"user_id": user_id, "day": day})
        return entry is not None

    async def last_sent_question(self, user_id: str, day: str) -> Optional[Question]:
        cursor = self.database.daily_sequence_entries.find(
            {"user_id": user_id, "day": day}
        ).sort("sent_at", -1).limit(1)
        entries = await cursor.to_list(length=1)
        if not entries:
            return None
        return await self.questions.get_question(entries[0]["question_id"])

    async def entries_for_day(self, user_id: str, day: str) -> List[DailySequenceEntry]:
        cursor = self.database.daily_sequence_entries.find(
            {"user_id": user_id, "day": day}
        ).sort("created_at", 1)
        return [DailySequenceEntry.from_document(document) for document in await cursor.to_list(length=None)]
