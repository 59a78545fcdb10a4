"""
app/models/sequence.py

Purpose: Daily sequence ledger entry

- One entry per (user, question, calendar day)
- Absence of an entry means the question is still pending for that day
"""

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field


class DailySequenceEntry(BaseModel):
    user_id: str
    question_id: str
    day: str = Field(..., description="ISO calendar day, e.g. 2024-05-01")
    sent_at: datetime
    created_at: datetime

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "DailySequenceEntry":
        return cls.model_validate(document)
