"""
app/flow/dispatcher.py

Purpose: Question dispatcher

- Picks the next pending question for a user and day
- Hands it to the channel's transport for rendering and delivery
- Marks the ledger only after the platform accepted the message
"""

from typing import Callable

from pymongo.errors import PyMongoError

from app.core.exceptions import TransportError, UnsupportedChannelError
from app.core.logging import get_logger, LogContext
from app.models.channel import ChannelKind
from app.services.ledger_service import SequenceLedger
from app.transports.registry import TransportRegistry

logger = get_logger(__name__)


class QuestionDispatcher:

    def __init__(self, ledger: SequenceLedger, transports: TransportRegistry, today: Callable[[], str]):
        self.ledger = ledger
        self.transports = transports
        self.today = today

    async def send_next_question(self, user_id: str, channel_kind: ChannelKind, native_id: str) -> bool:
        """
        Sends the user's next pending question for today over one channel.

        Args:
            user_id: User ID
            channel_kind: Channel to deliver on
            native_id: Chat id / phone number on that channel

        Returns:
            True if a question was delivered, False when today's sequence
            is exhausted

        Raises:
            UnsupportedChannelError: The channel cannot carry questions
            TransportError: The platform refused the message (ledger untouched)
            ConfigurationError: The channel has no credentials
        """
        channel_kind = ChannelKind(channel_kind)
        day = self.today()

        with LogContext(user_id=user_id, channel=channel_kind.value, day=day):
            question = await self.ledger.find_next_pending(user_id, day)
            if question is None:
                logger.info("No pending question left for today")
                return False

            transport = self.transports.get(channel_kind)
            if not transport.can_send_questions:
                raise UnsupportedChannelError(
                    f"{channel_kind.value} cannot deliver questions",
                    details={"channel": channel_kind.value}
                )

            logger.info(f"📨 Sending question {question.id}")
            result = await transport.send_question(native_id, question)

            if not result.get("success"):
                logger.error(f"❌ Question {question.id} not delivered: {result.get('error')}")
                raise TransportError(
                    f"{channel_kind.value} delivery failed",
                    details={"question_id": question.id, "error": result.get("error")}
                )

            try:
                await self.ledger.mark_sent(user_id, question.id, day)
            except PyMongoError as e:
                # Delivered but not recorded: the question may be sent again
                logger.error(f"Ledger write failed after delivery of {question.id}: {e}", exc_info=True)

            logger.info(f"✅ Question {question.id} delivered")
            return True
