"""
User model for persistent database storage
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class UserTier(str, Enum):
    """User membership level, unrelated to quiz content tiers"""
    STANDARD = "Standard"
    SILVER = "Silver"
    GOLD = "Gold"
    DIAMOND = "Diamond"


class LanguageCode(str, Enum):
    EN = "en"
    ES = "es"
    FR = "fr"
    DE = "de"
    RU = "ru"
    ZH = "zh"
    JA = "ja"


class User(BaseModel):
    """User database model"""
    id: UUID
    email: str
    telegram_id: Optional[str] = None
    username: Optional[str] = None
    language_preference: str = LanguageCode.EN.value
    wallet_address: Optional[str] = None
    points: int = Field(default=0, ge=0)
    tier: UserTier = UserTier.STANDARD
    last_active: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"use_enum_values": True}
