"""
app/services/answer_service.py

Purpose: Answers submitted over HTTP

- Web Push has no reply channel; the questions page posts answers here
- Only subscribed questions and their listed options are accepted
- One answer per (user, question, day); resubmitting replaces it
- Answers for today move the conversation state machine along
"""

from datetime import datetime
from typing import Callable, Dict, Optional
from uuid import uuid4

from pymongo.errors import DuplicateKeyError

from app.core.exceptions import ValidationError
from app.core.logging import get_logger, LogContext
from app.db.mongo import MongoDatabase
from app.flow.states import ConversationEvent, ConversationState
from app.models.answer import Answer
from app.services.question_service import QuestionService
from app.services.session_service import SessionService

logger = get_logger(__name__)


class AnswerService:

    def __init__(
        self,
        database: MongoDatabase,
        questions: QuestionService,
        sessions: SessionService,
        today: Callable[[], str]
    ):
        self.database = database
        self.questions = questions
        self.sessions = sessions
        self.today = today

    async def submit_answer(
        self,
        user_id: str,
        question_id: str,
        answer: str,
        day: Optional[str] = None
    ) -> Answer:
        """
        Stores the user's answer to one question for one day.

        Args:
            user_id: User ID
            question_id: Question being answered
            answer: One of the question's options
            day: ISO day, defaults to today

        Returns:
            The stored answer

        Raises:
            ValidationError: Not subscribed to the question, or not one of its options
        """
        day = day or self.today()

        with LogContext(user_id=user_id, question_id=question_id, day=day):
            question = await self.questions.get_subscribed_question(user_id, question_id)
            if question is None:
                raise ValidationError(
                    "You are not subscribed to this question",
                    details={"question_id": question_id}
                )
            if answer not in question.options:
                raise ValidationError(
                    "Invalid answer option",
                    details={"answer": answer, "options": question.options}
                )

            key = {"user_id": user_id, "question_id": question_id, "day": day}
            now = datetime.utcnow()
            update = {
                "$set": {"answer": answer, "updated_at": now},
                "$setOnInsert": {"_id": uuid4().hex, "created_at": now},
            }

            try:
                await self.database.answers.update_one(key, update, upsert=True)
            except DuplicateKeyError:
                await self.database.answers.update_one(key, {"$set": {"answer": answer, "updated_at": now}})

            logger.info("📝 Answer saved")
            document = await self.database.answers.find_one(key)

            if day == self.today():
                await self._advance_state(user_id, day)

            return Answer.from_document(document)

    async def answers_for_day(self, user_id: str, day: str) -> Dict[str, str]:
        """Maps question id to the answer given on `day`."""
        cursor = self.database.answers.find({"user_id": user_id, "day": day})
        return {document["question_id"]: document["answer"] for document in await cursor.to_list(length=None)}

    async def _advance_state(self, user_id: str, day: str):
        """
        An answer opens the conversation if the day is waiting for it, and
        completes the day once every subscribed question has an answer.
        Users outside today's sequence are left alone.
        """
        state = await self.sessions.get_state(user_id)
        if state == ConversationState.AWAITING_PERMISSION:
            state = await self.sessions.apply_event(user_id, ConversationEvent.PERMISSION_GRANTED)
        if state != ConversationState.AWAITING_ANSWER:
            return

        await self.sessions.apply_event(user_id, ConversationEvent.ANSWERED)

        subscribed = await self.questions.get_subscribed_questions(user_id)
        answered = await self.answers_for_day(user_id, day)
        if all(question.id in answered for question in subscribed):
            await self.sessions.apply_event(user_id, ConversationEvent.COMPLETE)
