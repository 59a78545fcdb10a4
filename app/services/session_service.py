"""
app/services/session_service.py

Purpose: Conversation state persistence

- Applies state machine events to the user's stored state
- Persists every transition before the caller acts on it
- Keeps a short state history for debugging
- Opens a new day's sequence from whatever state yesterday left behind
"""

from datetime import datetime

from app.db.mongo import MongoDatabase
from app.flow.states import ConversationState, ConversationEvent, next_state, get_state_metadata
from app.core.logging import get_logger, LogContext

logger = get_logger(__name__)

STATE_HISTORY_LIMIT = 50


class SessionService:
    """Service for the persisted per-user conversation state."""

    def __init__(self, database: MongoDatabase):
        self.database = database

    async def get_state(self, user_id: str) -> ConversationState:
        user = await self.database.users.find_one({"_id": user_id}, {"state": 1})
        return ConversationState.parse(user.get("state") if user else None)

    async def apply_event(self, user_id: str, event: ConversationEvent) -> ConversationState:
        """
        Feeds one event into the user's state machine.

        Unknown event/state combinations are no-ops. The write is a
        compare-and-set on the state that was read, so a concurrent
        transition is never overwritten.

        Args:
            user_id: User ID
            event: Event to apply

        Returns:
            The user's persisted state after the call
        """
        current = await self.get_state(user_id)
        target = next_state(current, event)

        with LogContext(user_id=user_id, state=current.value):
            if target is None:
                logger.debug(f"Event {event.value} ignored in state {current.value}")
                return current

            now = datetime.utcnow()
            expected = None if current == ConversationState.IDLE else current.value
            state_filter = {"_id": user_id}
            if expected is None:
                state_filter["state"] = {"$in": [None, ConversationState.IDLE.value]}
            else:
                state_filter["state"] = expected

            result = await self.database.users.update_one(
                state_filter,
                {
                    "$set": {
                        "state": target.value,
                        "state_updated_at": now,
                        "updated_at": now,
                    },
                    "$push": {
                        "state_history": {
                            "$each": [{
                                "from": current.value,
                                "to": target.value,
                                "event": event.value,
                                "timestamp": now,
                            }],
                            "$slice": -STATE_HISTORY_LIMIT,
                        }
                    }
                }
            )

            if result.matched_count == 0:
                persisted = await self.get_state(user_id)
                logger.warning(
                    f"State changed concurrently; {event.value} not applied (now {persisted.value})"
                )
                return persisted

            logger.info(f"State updated: {current.value} -> {target.value} on {event.value}")
            return target

    async def begin_day(self, user_id: str) -> ConversationState:
        """
        Moves the user into a new day's sequence (awaiting_permission).

        completed/failed are reset first; a sequence still open from an
        earlier day is marked failed, then reset.
        """
        state = await self.get_state(user_id)

        if get_state_metadata(state).in_sequence:
            logger.info(
                f"Abandoning unfinished sequence in {state.value}",
                extra={"user_id": user_id}
            )
            state = await self.apply_event(user_id, ConversationEvent.FAILED)

        if get_state_metadata(state).terminal:
            state = await self.apply_event(user_id, ConversationEvent.RESET)

        return await self.apply_event(user_id, ConversationEvent.START_DAY)
