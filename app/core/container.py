"""
app/core/container.py

Purpose: Wires services together

- Built once by each process entry point (API lifespan, broadcast script)
- Services receive their dependencies explicitly, no module globals
"""

from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from app.core.config import Settings
from app.db.mongo import MongoDatabase
from app.flow.dispatcher import QuestionDispatcher
from app.flow.router import InboundEventRouter
from app.flow.scheduler import DailyBroadcastScheduler
from app.services.answer_service import AnswerService
from app.services.ledger_service import SequenceLedger
from app.services.push_service import PushService
from app.services.question_service import QuestionService
from app.services.session_service import SessionService
from app.services.user_service import UserService
from app.transports.registry import TransportRegistry, build_transports
from utils.time_utils import current_day


@dataclass
class ServiceContainer:
    settings: Settings
    database: MongoDatabase
    users: UserService
    questions: QuestionService
    ledger: SequenceLedger
    sessions: SessionService
    push: PushService
    answers: AnswerService
    transports: TransportRegistry
    dispatcher: QuestionDispatcher
    scheduler: DailyBroadcastScheduler
    router: InboundEventRouter


def build_container(
    database: MongoDatabase,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
    transports: Optional[TransportRegistry] = None,
    today: Optional[Callable[[], str]] = None
) -> ServiceContainer:
    """
    Builds every service on top of one database handle.

    Args:
        database: Connected MongoDatabase
        settings: Application settings
        client: Shared HTTP client for the chat transports
        transports: Prebuilt registry (tests pass fakes here)
        today: Day-key provider, defaults to the configured timezone
    """
    if today is None:
        today = lambda: current_day(settings.DAY_TIMEZONE)

    users = UserService(database)
    questions = QuestionService(database)
    ledger = SequenceLedger(database, questions)
    sessions = SessionService(database)
    push = PushService(database)
    answers = AnswerService(database, questions, sessions, today)

    if transports is None:
        transports = build_transports(settings, push, client=client)

    dispatcher = QuestionDispatcher(ledger, transports, today)
    scheduler = DailyBroadcastScheduler(
        users, questions, ledger, sessions, dispatcher, transports, today,
        concurrency=settings.BROADCAST_CONCURRENCY
    )
    router = InboundEventRouter(users, ledger, sessions, dispatcher, transports, today)

    return ServiceContainer(
        settings=settings,
        database=database,
        users=users,
        questions=questions,
        ledger=ledger,
        sessions=sessions,
        push=push,
        answers=answers,
        transports=transports,
        dispatcher=dispatcher,
        scheduler=scheduler,
        router=router,
    )
