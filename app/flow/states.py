"""
app/flow/states.py

Purpose: Defines the daily conversation state machine

- Enum of conversation states (idle, awaiting_permission, awaiting_answer, ...)
- Enum of events that drive it
- Single source of truth for allowed transitions
- Metadata for each state
"""

from enum import Enum
from typing import Dict, Optional
from dataclasses import dataclass


class ConversationState(str, Enum):
    """
    Where a user stands in today's question sequence.
    The value is what gets persisted on the user document.
    """

    IDLE = "idle"
    AWAITING_PERMISSION = "awaiting_permission"
    AWAITING_ANSWER = "awaiting_answer"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ConversationState":
        """Reads a persisted value; missing or unknown values mean idle."""
        if not value:
            return cls.IDLE
        try:
            return cls(value)
        except ValueError:
            return cls.IDLE


class ConversationEvent(str, Enum):
    """External events fed into the state machine."""

    START_DAY = "start_day"
    PERMISSION_GRANTED = "permission_granted"
    ANSWERED = "answered"
    SKIPPED = "skipped"
    COMPLETE = "complete"
    FAILED = "failed"
    RESET = "reset"


@dataclass
class StateMetadata:
    name: ConversationState
    display_name: str
    in_sequence: bool = False  # A day's sequence is underway
    terminal: bool = False  # Only `reset` leaves this state
    description: str = ""


STATE_METADATA: Dict[ConversationState, StateMetadata] = {
    ConversationState.IDLE: StateMetadata(
        name=ConversationState.IDLE,
        display_name="Idle",
        description="No sequence running"
    ),
    ConversationState.AWAITING_PERMISSION: StateMetadata(
        name=ConversationState.AWAITING_PERMISSION,
        display_name="Awaiting permission",
        in_sequence=True,
        description="Day started, waiting for the user to open the conversation"
    ),
    ConversationState.AWAITING_ANSWER: StateMetadata(
        name=ConversationState.AWAITING_ANSWER,
        display_name="Awaiting answer",
        in_sequence=True,
        description="A question has been delivered and an answer is expected"
    ),
    ConversationState.COMPLETED: StateMetadata(
        name=ConversationState.COMPLETED,
        display_name="Completed",
        terminal=True,
        description="All subscribed questions were delivered today"
    ),
    ConversationState.FAILED: StateMetadata(
        name=ConversationState.FAILED,
        display_name="Failed",
        terminal=True,
        description="The day's sequence could not be delivered or was abandoned"
    ),
}


TRANSITIONS: Dict[ConversationState, Dict[ConversationEvent, ConversationState]] = {
    ConversationState.IDLE: {
        ConversationEvent.START_DAY: ConversationState.AWAITING_PERMISSION,
    },
    ConversationState.AWAITING_PERMISSION: {
        ConversationEvent.PERMISSION_GRANTED: ConversationState.AWAITING_ANSWER,
        ConversationEvent.FAILED: ConversationState.FAILED,
    },
    ConversationState.AWAITING_ANSWER: {
        ConversationEvent.ANSWERED: ConversationState.AWAITING_ANSWER,
        ConversationEvent.SKIPPED: ConversationState.AWAITING_ANSWER,
        ConversationEvent.COMPLETE: ConversationState.COMPLETED,
        ConversationEvent.FAILED: ConversationState.FAILED,
    },
    ConversationState.COMPLETED: {
        ConversationEvent.RESET: ConversationState.IDLE,
    },
    ConversationState.FAILED: {
        ConversationEvent.RESET: ConversationState.IDLE,
    },
}


def next_state(state: ConversationState, event: ConversationEvent) -> Optional[ConversationState]:
    """
    Evaluates one transition.

    Args:
        state: Current state
        event: Incoming event

    Returns:
        The target state, or None when the event is not accepted in `state`
    """
    return TRANSITIONS.get(state, {}).get(event)


def get_state_metadata(state: ConversationState) -> StateMetadata:
    return STATE_METADATA.get(state, StateMetadata(
        name=state,
        display_name=state.value,
        description="Unknown state"
    ))
