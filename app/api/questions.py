"""
app/api/questions.py

Purpose: Question subscription endpoints

- Subscribe / unsubscribe a user to a question
- List a user's subscriptions
- A user's questions for a given day (the page push notifications open)
- Answers submitted from that page
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_container
from app.core.container import ServiceContainer
from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.core.logging import get_logger
from app.schemas.response import AnswerRequest
from utils.time_utils import parse_day

logger = get_logger(__name__)
router = APIRouter()


async def _require_user(container: ServiceContainer, user_id: str):
    user = await container.users.get_user(user_id)
    if user is None:
        raise ResourceNotFoundError("User not found", details={"user_id": user_id})
    return user


@router.post("/users/{user_id}/questions/{question_id}/subscribe")
async def subscribe(user_id: str, question_id: str, container: ServiceContainer = Depends(get_container)):
    await _require_user(container, user_id)
    await container.questions.subscribe(user_id, question_id)
    logger.info(f"User {user_id} subscribed to question {question_id}")
    return {"success": True, "message": "Successfully subscribed to question"}


@router.post("/users/{user_id}/questions/{question_id}/unsubscribe")
async def unsubscribe(user_id: str, question_id: str, container: ServiceContainer = Depends(get_container)):
    await _require_user(container, user_id)
    changed = await container.questions.unsubscribe(user_id, question_id)
    logger.info(f"User {user_id} unsubscribed from question {question_id}")
    return {"success": True, "subscribed": False, "changed": changed}


@router.get("/users/{user_id}/subscriptions")
async def list_subscriptions(user_id: str, container: ServiceContainer = Depends(get_container)):
    await _require_user(container, user_id)
    questions = await container.questions.get_subscribed_questions(user_id)
    return {
        "questions": [
            {"id": question.id, "text": question.text, "options": question.options}
            for question in questions
        ]
    }


def _validate_day(day: str) -> str:
    try:
        parse_day(day)
    except ValueError:
        raise ValidationError("Day must be formatted as YYYY-MM-DD", details={"day": day})
    return day


@router.get("/users/{user_id}/questions/{day}")
async def questions_for_day(user_id: str, day: str, container: ServiceContainer = Depends(get_container)):
    """
    The user's questions for `day` (YYYY-MM-DD) with when each was sent
    over chat, if at all, and the answer given so far.
    """
    _validate_day(day)
    await _require_user(container, user_id)

    questions = await container.questions.get_subscribed_questions(user_id)
    sent_at = {entry.question_id: entry.sent_at for entry in await container.ledger.entries_for_day(user_id, day)}
    answers = await container.answers.answers_for_day(user_id, day)

    return {
        "day": day,
        "questions": [
            {
                "id": question.id,
                "text": question.text,
                "options": question.options,
                "sent_at": sent_at.get(question.id),
                "current_answer": answers.get(question.id),
            }
            for question in questions
        ],
    }


@router.post("/users/{user_id}/answers")
async def submit_answer(
    user_id: str,
    body: AnswerRequest,
    container: ServiceContainer = Depends(get_container),
):
    day = _validate_day(body.day) if body.day else None
    await _require_user(container, user_id)

    answer = await container.answers.submit_answer(user_id, body.question_id, body.answer, day=day)
    state = await container.sessions.get_state(user_id)
    return {
        "success": True,
        "message": "Answer saved successfully",
        "day": answer.day,
        "state": state.value,
    }
