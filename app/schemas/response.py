"""
app/schemas/response.py

Purpose: API response and request bodies
"""

from pydantic import BaseModel, Field
from typing import Any, List, Optional

from utils.constants import PUSH_TITLE


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class BroadcastSummary(BaseModel):
    """
    Result of one daily broadcast run.
    """
    day: str
    users_total: int = 0
    users_started: int = 0
    users_skipped: int = 0
    sent: int = 0
    failed: int = 0


class PushBroadcastRequest(BaseModel):
    title: str = Field(default=PUSH_TITLE, min_length=1)
    body: str = Field(..., min_length=1)
    url: Optional[str] = None
    user_ids: Optional[List[str]] = None


class PushBroadcastSummary(BaseModel):
    users_total: int = 0
    users_sent: int = 0
    sent: int = 0
    failed: int = 0


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscriptionBody(BaseModel):
    """Browser PushSubscription.toJSON() shape."""
    endpoint: str
    keys: PushKeys


class PushSubscribeRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    subscription: PushSubscriptionBody


class PushUnsubscribeRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    endpoint: str


class AnswerRequest(BaseModel):
    """Answer submitted from the questions page."""
    question_id: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    day: Optional[str] = Field(default=None, description="YYYY-MM-DD, defaults to today")
