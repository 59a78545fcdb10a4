"""
app/models/channel.py

Purpose: Channel link document model

- Closed set of channel kinds (Telegram, WhatsApp, Web Push)
- Binds a user to a channel-native identity
- (kind, native_id) is globally unique
"""

from enum import Enum
from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field


class ChannelKind(str, Enum):
    """Messaging platforms a user can be reached on."""

    TELEGRAM = "TELEGRAM"
    WHATSAPP = "WHATSAPP"
    WEB_PUSH = "WEB_PUSH"


class ChannelLink(BaseModel):
    id: str = Field(..., alias="_id")
    user_id: str
    kind: ChannelKind
    native_id: str = Field(..., description="Chat id, phone number or push endpoint")
    enabled: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "ChannelLink":
        return cls.model_validate(document)
