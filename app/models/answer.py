"""
app/models/answer.py

Purpose: Answer document model

- One answer per (user, question, calendar day)
- Submitted from the questions page opened by a push notification
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Answer(BaseModel):
    id: Optional[str] = Field(default=None, alias="_id")
    user_id: str
    question_id: str
    day: str = Field(..., description="ISO calendar day, e.g. 2024-05-01")
    answer: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Answer":
        return cls.model_validate(document)
