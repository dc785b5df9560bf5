from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class QuizHistoryEntry(BaseModel):
    """One answered question"""
    id: UUID
    user_id: UUID
    question_id: UUID
    category_id: Optional[UUID] = None
    score: int
    completed_at: datetime


class DailyActivity(BaseModel):
    """One completed daily task"""
    id: UUID
    user_id: UUID
    activity_id: str
    points: int
    reason: Optional[str] = None
    completed_at: datetime
