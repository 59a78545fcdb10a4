"""
app/schemas/webhook.py

Purpose: Inbound webhook payload parsing

- Normalizes Telegram updates and WhatsApp Cloud API payloads
  into one InboundMessage shape
- Ensures predictable request handling downstream
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.models.channel import ChannelKind
from utils.whatsapp_utils import get_message_text, parse_list_response


class InboundMessage(BaseModel):
    """
    Normalized message format for internal processing.
    Works with both Telegram and WhatsApp.
    """
    channel: ChannelKind
    native_id: str = Field(..., description="Chat id or phone number the reply goes to")
    text: Optional[str] = Field(default=None, description="Message text content")
    message_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    # Structured choice replies (WhatsApp list_reply)
    choice_id: Optional[str] = None
    choice_title: Optional[str] = None

    # Profile fields
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "channel": "WHATSAPP",
                "native_id": "15551234567",
                "text": "Great",
                "choice_id": "option_0",
                "choice_title": "Great"
            }
        }

    @property
    def profile(self) -> Dict[str, Optional[str]]:
        return {
            "username": self.username,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "display_name": self.display_name,
        }

    @property
    def is_structured_choice(self) -> bool:
        return self.choice_id is not None


def parse_telegram_update(update: Dict[str, Any]) -> Optional[InboundMessage]:
    """
    Parses a Telegram update.

    Telegram format (JSON):
    {
        "update_id": 1,
        "message": {
            "message_id": 10,
            "chat": {"id": 123456789},
            "from": {"id": 123456789, "username": "jdoe", "first_name": "John"},
            "text": "Great"
        }
    }

    Returns:
        InboundMessage, or None when the update carries no message
    """
    message = update.get("message") or update.get("edited_message")
    if not message or "chat" not in message:
        return None

    sender = message.get("from") or {}
    return InboundMessage(
        channel=ChannelKind.TELEGRAM,
        native_id=str(message["chat"]["id"]),
        text=message.get("text"),
        message_id=str(message["message_id"]) if message.get("message_id") is not None else None,
        username=sender.get("username"),
        first_name=sender.get("first_name"),
        last_name=sender.get("last_name"),
    )


def parse_whatsapp_payload(payload: Dict[str, Any]) -> List[InboundMessage]:
    """
    Parses a WhatsApp Cloud API webhook payload.

    WhatsApp format (JSON):
    {
        "entry": [{
            "changes": [{
                "field": "messages",
                "value": {
                    "contacts": [{"wa_id": "15551234567", "profile": {"name": "John"}}],
                    "messages": [{
                        "from": "15551234567",
                        "id": "wamid.abc",
                        "type": "interactive",
                        "interactive": {"type": "list_reply", "list_reply": {"id": "option_0", "title": "Great"}}
                    }]
                }
            }]
        }]
    }

    Status callbacks (delivered/read) carry no messages and yield nothing.
    """
    messages: List[InboundMessage] = []

    for entry in payload.get("entry") or []:
        for change in entry.get("changes") or []:
            if change.get("field", "messages") != "messages":
                continue
            value = change.get("value") or {}

            names = {
                contact.get("wa_id"): (contact.get("profile") or {}).get("name")
                for contact in value.get("contacts") or []
            }

            for message in value.get("messages") or []:
                sender = message.get("from")
                if not sender:
                    continue

                choice = parse_list_response(message)
                messages.append(InboundMessage(
                    channel=ChannelKind.WHATSAPP,
                    native_id=sender,
                    text=get_message_text(message),
                    message_id=message.get("id"),
                    choice_id=choice["id"] if choice else None,
                    choice_title=choice["title"] if choice else None,
                    display_name=names.get(sender),
                ))

    return messages
