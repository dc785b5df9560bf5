"""
SQLAlchemy ORM models for database tables
"""

from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, Index, Text, JSON, Numeric,
    ForeignKey, Uuid, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base
import uuid

from quizhub.core.utils.clock import utcnow

Base = declarative_base()


class UserModel(Base):
    """SQLAlchemy ORM model for users table"""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False)
    telegram_id = Column(String(64), nullable=True)
    username = Column(String(100), nullable=True)
    language_preference = Column(String(8), default="en", nullable=False)
    wallet_address = Column(String(255), nullable=True)
    points = Column(Integer, default=0, nullable=False)
    tier = Column(String(20), default="Standard", nullable=False)
    last_active = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_users_email', 'email', unique=True),
        Index('idx_users_telegram_id', 'telegram_id', unique=True),
        Index('idx_users_points', 'points'),
    )

    def __repr__(self):
        return f"<User(email='{self.email}', points={self.points}, tier='{self.tier}')>"


class QuizHistoryModel(Base):
    """Append-only ledger of answered questions, one row per submission"""

    __tablename__ = "quiz_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(Uuid, nullable=False)
    category_id = Column(Uuid, nullable=True)
    score = Column(Integer, default=0, nullable=False)
    completed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_quiz_history_user_completed', 'user_id', 'completed_at'),
    )


class DailyActivityModel(Base):
    """Append-only ledger of completed daily tasks"""

    __tablename__ = "daily_activities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    activity_id = Column(String(100), nullable=False)
    points = Column(Integer, default=0, nullable=False)
    reason = Column(String(255), nullable=True)
    completed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_daily_activities_user_activity', 'user_id', 'activity_id', 'completed_at'),
    )


class OtpModel(Base):
    """One live one-time code per email address"""

    __tablename__ = "otps"

    email = Column(String(255), primary_key=True)
    code = Column(String(12), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class AdminModel(Base):
    """SQLAlchemy ORM model for admins table"""

    __tablename__ = "admins"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False)
    username = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    twofa_security = Column(Boolean, default=False, nullable=False)
    twofa_secret = Column(String(64), nullable=True)
    twofa_verified = Column(Boolean, default=False, nullable=False)
    refresh_token_hash = Column(String(128), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_admins_email', 'email', unique=True),
        Index('idx_admins_username', 'username', unique=True),
    )

    def __repr__(self):
        return f"<Admin(email='{self.email}', username='{self.username}')>"


class CategoryModel(Base):
    __tablename__ = "categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order_rank = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_categories_name', 'name', unique=True),
        Index('idx_categories_order_rank', 'order_rank', unique=True),
    )


class TierModel(Base):
    __tablename__ = "tiers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_paid = Column(Boolean, default=False, nullable=False)
    order_rank = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_tiers_order_rank', 'order_rank', unique=True),
    )


class QuestionModel(Base):
    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)
    correct_option_index = Column(Integer, nullable=False)
    category_id = Column(Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    tier_id = Column(Uuid, ForeignKey("tiers.id", ondelete="CASCADE"), nullable=False)
    rank = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('category_id', 'tier_id', 'rank', name='uq_questions_scope_rank'),
        Index('idx_questions_category_tier', 'category_id', 'tier_id'),
    )


class TranslationModel(Base):
    __tablename__ = "translations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id = Column(Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    language_code = Column(String(8), nullable=False)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)

    __table_args__ = (
        UniqueConstraint('question_id', 'language_code', name='uq_translations_question_language'),
    )


class UserPaymentModel(Base):
    __tablename__ = "user_payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    tier_id = Column(Uuid, ForeignKey("tiers.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(10), default="usd", nullable=False)
    payment_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index('idx_user_payments_user_tier', 'user_id', 'tier_id'),
    )
