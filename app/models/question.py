"""
app/models/question.py

Purpose: Question and subscription models

- Question text and ordered answer options
- Creation order is the sequencing tie-break
- QuestionPreference (user x question) marks a subscription
"""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class Question(BaseModel):
    id: str = Field(..., alias="_id")
    text: str
    options: List[str] = Field(default_factory=list)
    active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Question":
        return cls.model_validate(document)


class QuestionPreference(BaseModel):
    user_id: str
    question_id: str
    enabled: bool = True
