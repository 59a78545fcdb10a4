"""
app/models/user.py

Purpose: User document model

- Identity and profile fields (display name, Telegram username, ...)
- Active flag
- Current conversation state (None means idle)
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from app.flow.states import ConversationState


class User(BaseModel):
    id: str = Field(..., alias="_id")
    display_name: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    active: bool = True
    state: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True

    @property
    def conversation_state(self) -> ConversationState:
        return ConversationState.parse(self.state)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "User":
        return cls.model_validate(document)
