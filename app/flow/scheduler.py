"""
app/flow/scheduler.py

Purpose: Daily broadcast

- Entry point run once per scheduling period (cron, script, HTTP trigger)
- Starts today's sequence for every eligible user
- Sends each enabled channel its start-of-day message
- One user's or channel's failure never aborts the batch
"""

import asyncio
from typing import Any, Callable, Dict

from pymongo.errors import PyMongoError

from app.core.exceptions import NotimonError, TransportError
from app.core.logging import get_logger, LogContext
from app.flow.dispatcher import QuestionDispatcher
from app.flow.states import ConversationEvent
from app.models.channel import ChannelLink
from app.models.user import User
from app.services.ledger_service import SequenceLedger
from app.services.question_service import QuestionService
from app.services.session_service import SessionService
from app.services.user_service import UserService
from app.transports.base import StartOfDayContext, StartOfDayMode
from app.transports.registry import TransportRegistry

logger = get_logger(__name__)

SENT = "sent"
FAILED = "failed"
NOTHING_PENDING = "nothing_pending"


class DailyBroadcastScheduler:

    def __init__(
        self,
        users: UserService,
        questions: QuestionService,
        ledger: SequenceLedger,
        sessions: SessionService,
        dispatcher: QuestionDispatcher,
        transports: TransportRegistry,
        today: Callable[[], str],
        concurrency: int = 5
    ):
        self.users = users
        self.questions = questions
        self.ledger = ledger
        self.sessions = sessions
        self.dispatcher = dispatcher
        self.transports = transports
        self.today = today
        self.concurrency = concurrency

    async def run_daily_broadcast(self) -> Dict[str, Any]:
        """
        Runs one broadcast for today.

        Returns:
            {"day", "users_total", "users_started", "users_skipped", "sent", "failed"}
        """
        day = self.today()
        users = await self.users.list_active_users()
        semaphore = asyncio.Semaphore(self.concurrency)

        logger.info(f"🚀 Daily broadcast for {day}: {len(users)} active users")

        async def guarded(user: User) -> Dict[str, int]:
            async with semaphore:
                try:
                    return await self._process_user(user, day)
                except Exception as e:
                    logger.error(f"Unexpected error for user {user.id}: {e}", exc_info=True)
                    return {"started": 0, "skipped": 0, "sent": 0, "failed": 1}

        outcomes = await asyncio.gather(*(guarded(user) for user in users))

        summary = {
            "day": day,
            "users_total": len(users),
            "users_started": sum(outcome["started"] for outcome in outcomes),
            "users_skipped": sum(outcome["skipped"] for outcome in outcomes),
            "sent": sum(outcome["sent"] for outcome in outcomes),
            "failed": sum(outcome["failed"] for outcome in outcomes),
        }
        logger.info(
            f"📊 Daily broadcast finished: started={summary['users_started']} "
            f"skipped={summary['users_skipped']} sent={summary['sent']} failed={summary['failed']}",
            extra={"day": day}
        )
        return summary

    async def _process_user(self, user: User, day: str) -> Dict[str, int]:
        outcome = {"started": 0, "skipped": 0, "sent": 0, "failed": 0}

        with LogContext(user_id=user.id, day=day):
            try:
                if await self.questions.count_enabled_preferences(user.id) == 0:
                    logger.debug("No subscribed questions, skipping")
                    outcome["skipped"] = 1
                    return outcome

                links = await self.users.get_enabled_channel_links(user.id)
                if not links:
                    logger.debug("No enabled channel links, skipping")
                    outcome["skipped"] = 1
                    return outcome

                pending = await self.ledger.pending_questions(user.id, day)
                if not pending:
                    logger.info("No outstanding question today, skipping")
                    outcome["skipped"] = 1
                    return outcome

                await self.sessions.begin_day(user.id)
            except PyMongoError as e:
                logger.error(f"Storage error while preparing user: {e}", exc_info=True)
                outcome["failed"] = 1
                return outcome

            outcome["started"] = 1
            context = StartOfDayContext(
                user_id=user.id,
                day=day,
                pending_count=len(pending),
            )

            for link in links:
                result = await self._start_channel(user.id, link, context)
                if result == SENT:
                    outcome["sent"] += 1
                elif result == FAILED:
                    outcome["failed"] += 1

            if outcome["sent"] == 0 and outcome["failed"] > 0:
                try:
                    await self.sessions.apply_event(user.id, ConversationEvent.FAILED)
                except PyMongoError as e:
                    logger.error(f"Could not record failed state: {e}", exc_info=True)

            return outcome

    async def _start_channel(self, user_id: str, link: ChannelLink, context: StartOfDayContext) -> str:
        """
        Sends one channel its start-of-day message.
        Errors stop here and are reported as FAILED.
        """
        with LogContext(channel=link.kind.value):
            try:
                transport = self.transports.get(link.kind)

                if transport.start_of_day_mode == StartOfDayMode.QUESTION:
                    delivered = await self.dispatcher.send_next_question(user_id, link.kind, link.native_id)
                    if not delivered:
                        return NOTHING_PENDING
                    await self.sessions.apply_event(user_id, ConversationEvent.PERMISSION_GRANTED)
                    return SENT

                result = await transport.send_start_of_day(link.native_id, context)
                if not result.get("success"):
                    raise TransportError(
                        f"{link.kind.value} start-of-day message failed",
                        details={"error": result.get("error")}
                    )
                logger.info(f"✅ Start-of-day {transport.start_of_day_mode.value} sent")
                return SENT

            except (NotimonError, PyMongoError) as e:
                logger.error(f"❌ Start-of-day delivery failed: {e}")
                return FAILED
