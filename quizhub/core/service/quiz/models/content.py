"""
Quiz content entities: categories, tiers, questions, translations and payments
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

OPTIONS_PER_QUESTION = 4


class Category(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    order_rank: int
    created_at: Optional[datetime] = None


class Tier(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    is_paid: bool = False
    order_rank: int
    created_at: Optional[datetime] = None


class Translation(BaseModel):
    id: UUID
    question_id: UUID
    language_code: str
    question_text: str
    options: List[str]


class Question(BaseModel):
    id: UUID
    question_text: str
    options: List[str]
    correct_option_index: int
    category_id: UUID
    tier_id: UUID
    rank: int
    created_at: Optional[datetime] = None
    translations: List[Translation] = Field(default_factory=list)


class UserPayment(BaseModel):
    id: UUID
    user_id: UUID
    tier_id: UUID
    amount: Decimal
    currency: str = "usd"
    payment_date: datetime
    expiry_date: Optional[datetime] = None
    is_active: bool = True

    def grants_access(self, now: datetime) -> bool:
        """Active and either open-ended or not yet expired"""
        return self.is_active and (self.expiry_date is None or self.expiry_date > now)


class NewTranslation(BaseModel):
    """Translation payload nested inside a question batch"""
    language_code: str
    question_text: str
    options: List[str]


class NewQuestion(BaseModel):
    """Validated question payload ready for the batch insert"""
    question_text: str
    options: List[str]
    correct_option_index: int
    translations: List[NewTranslation] = Field(default_factory=list)


class TierSpec(BaseModel):
    """Tier descriptor for the batch insert, created when the rank is unknown"""
    name: str
    description: Optional[str] = None
    is_paid: bool = False
    order_rank: int


class TranslationImportSummary(BaseModel):
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)
