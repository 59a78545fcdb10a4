"""
app/models/push_subscription.py

Purpose: Stored browser push subscription

- Endpoint plus encryption keys (p256dh, auth)
- Disabled when the push service reports it as gone
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PushSubscription(BaseModel):
    id: Optional[str] = Field(default=None, alias="_id")
    user_id: str
    endpoint: str
    p256dh: str
    auth: str
    user_agent: Optional[str] = None
    enabled: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True

    def subscription_info(self) -> Dict[str, Any]:
        """Shape expected by the web push protocol library."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "PushSubscription":
        return cls.model_validate(document)
