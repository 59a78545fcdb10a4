"""
app/flow/router.py

Purpose: Inbound event routing

- Receives normalized messages from the webhooks
- Resolves (or creates) the user behind the channel identity
- Decides whether the message continues today's question sequence
- Replies with the next question, a completion note or an echo
"""

from typing import Callable, Optional

from pymongo.errors import PyMongoError

from app.core.exceptions import NotimonError
from app.core.logging import get_logger, LogContext
from app.flow.dispatcher import QuestionDispatcher
from app.flow.states import ConversationEvent, ConversationState, get_state_metadata
from app.schemas.webhook import InboundMessage
from app.services.ledger_service import SequenceLedger
from app.services.session_service import SessionService
from app.services.user_service import UserService
from app.transports.registry import TransportRegistry
from utils.constants import (
    COMPLETION_MESSAGE,
    CONTINUE_KEYWORDS,
    ECHO_MESSAGE,
    SKIP_KEYWORDS,
    START_COMMAND,
    WELCOME_MESSAGE,
)

logger = get_logger(__name__)

WELCOMED = "welcomed"
CONTINUED = "continued"
COMPLETED = "completed"
ECHOED = "echoed"
FAILED = "failed"
IGNORED = "ignored"


class InboundEventRouter:

    def __init__(
        self,
        users: UserService,
        ledger: SequenceLedger,
        sessions: SessionService,
        dispatcher: QuestionDispatcher,
        transports: TransportRegistry,
        today: Callable[[], str]
    ):
        self.users = users
        self.ledger = ledger
        self.sessions = sessions
        self.dispatcher = dispatcher
        self.transports = transports
        self.today = today

    async def handle(self, message: InboundMessage) -> str:
        """
        Routes one inbound message.

        Returns:
            Outcome name (welcomed, continued, completed, echoed, failed, ignored)
        """
        with LogContext(channel=message.channel.value):
            logger.info(f"📨 Inbound message from {message.native_id}")

            try:
                user = await self.users.find_or_create_user_by_channel(
                    message.channel, message.native_id, message.profile
                )
            except PyMongoError as e:
                logger.error(f"❌ Could not resolve user: {e}", exc_info=True)
                return FAILED

            with LogContext(user_id=user.id):
                try:
                    return await self._route(user.id, message)
                except (NotimonError, PyMongoError) as e:
                    logger.error(f"❌ Routing failed: {e}", exc_info=True)
                    return FAILED

    async def _route(self, user_id: str, message: InboundMessage) -> str:
        text = (message.text or message.choice_title or "").strip()
        keyword = text.lower()
        day = self.today()

        if keyword == START_COMMAND:
            await self._reply(message, WELCOME_MESSAGE)
            return WELCOMED

        if keyword in CONTINUE_KEYWORDS:
            return await self._advance(user_id, message, day, answer_event=None)

        if keyword in SKIP_KEYWORDS:
            return await self._advance(user_id, message, day, answer_event=ConversationEvent.SKIPPED)

        if await self._is_choice_reply(user_id, message, text, day):
            return await self._advance(user_id, message, day, answer_event=ConversationEvent.ANSWERED)

        if not text:
            return IGNORED

        await self._reply(message, ECHO_MESSAGE.format(text=text))
        return ECHOED

    async def _is_choice_reply(self, user_id: str, message: InboundMessage, text: str, day: str) -> bool:
        """
        A structured reply to a question sent today: a list selection, or
        text naming (or numbering) one option of the last question sent.
        """
        if message.is_structured_choice:
            return await self.ledger.has_active_sequence(user_id, day)

        if not text:
            return False

        question = await self.ledger.last_sent_question(user_id, day)
        if question is None:
            return False
        if text in question.options:
            return True
        return text.isdecimal() and 1 <= int(text) <= len(question.options)

    async def _advance(
        self,
        user_id: str,
        message: InboundMessage,
        day: str,
        answer_event: Optional[ConversationEvent]
    ) -> str:
        """
        Moves the state machine forward and sends the next question,
        or acknowledges that today's sequence is finished.
        """
        state = await self.sessions.get_state(user_id)

        if state == ConversationState.AWAITING_PERMISSION:
            await self.sessions.apply_event(user_id, ConversationEvent.PERMISSION_GRANTED)
        elif state == ConversationState.AWAITING_ANSWER:
            if answer_event is not None:
                await self.sessions.apply_event(user_id, answer_event)
        elif not get_state_metadata(state).in_sequence:
            # No broadcast opened the day for this user; open it on request
            if await self.ledger.find_next_pending(user_id, day) is not None:
                await self.sessions.begin_day(user_id)
                await self.sessions.apply_event(user_id, ConversationEvent.PERMISSION_GRANTED)

        delivered = await self.dispatcher.send_next_question(user_id, message.channel, message.native_id)
        if delivered:
            return CONTINUED

        await self.sessions.apply_event(user_id, ConversationEvent.COMPLETE)
        await self._reply(message, COMPLETION_MESSAGE)
        return COMPLETED

    async def _reply(self, message: InboundMessage, text: str):
        transport = self.transports.get(message.channel)
        result = await transport.send_text(message.native_id, text)
        if not result.get("success"):
            logger.error(f"❌ Reply not delivered: {result.get('error')}")
