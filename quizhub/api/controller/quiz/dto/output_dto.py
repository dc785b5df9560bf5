"""
Output DTOs for quiz content and delivery endpoints.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from quizhub.api.controller.auth.dto.output_dto import UserDto
from quizhub.core.service.quiz.delivery_service import (
    AnswerResult, PointsGrant, QuestionView, TierCompletion,
)
from quizhub.core.service.quiz.models.content import (
    Category, Question, Tier, Translation, TranslationImportSummary, UserPayment,
)


class CategoryDto(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    orderRank: int

    @classmethod
    def from_entity(cls, category: Category) -> "CategoryDto":
        return cls(
            id=str(category.id),
            name=category.name,
            description=category.description,
            orderRank=category.order_rank
        )


class TierDto(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    isPaid: bool
    orderRank: int

    @classmethod
    def from_entity(cls, tier: Tier) -> "TierDto":
        return cls(
            id=str(tier.id),
            name=tier.name,
            description=tier.description,
            isPaid=tier.is_paid,
            orderRank=tier.order_rank
        )


class TranslationDto(BaseModel):
    id: str
    questionId: str
    languageCode: str
    questionText: str
    options: List[str]

    @classmethod
    def from_entity(cls, translation: Translation) -> "TranslationDto":
        return cls(
            id=str(translation.id),
            questionId=str(translation.question_id),
            languageCode=translation.language_code,
            questionText=translation.question_text,
            options=translation.options
        )


class QuestionDto(BaseModel):
    """Admin view of a question, correct index included."""

    id: str
    questionText: str
    options: List[str]
    correctOptionIndex: int
    categoryId: str
    tierId: str
    rank: int
    translations: List[TranslationDto] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, question: Question) -> "QuestionDto":
        return cls(
            id=str(question.id),
            questionText=question.question_text,
            options=question.options,
            correctOptionIndex=question.correct_option_index,
            categoryId=str(question.category_id),
            tierId=str(question.tier_id),
            rank=question.rank,
            translations=[TranslationDto.from_entity(t) for t in question.translations]
        )


class QuestionBatchDto(BaseModel):
    tier: TierDto
    tierCreated: bool
    questions: List[QuestionDto]


class DeletedCategoryDto(BaseModel):
    orderRank: int
    deletedQuestions: int


class TranslationImportSummaryDto(BaseModel):
    processed: int
    created: int
    updated: int
    skipped: int
    errors: List[str]

    @classmethod
    def from_summary(cls, summary: TranslationImportSummary) -> "TranslationImportSummaryDto":
        return cls(**summary.model_dump())


class UserPaymentDto(BaseModel):
    id: str
    userId: str
    tierId: str
    amount: Decimal
    currency: str
    paymentDate: datetime
    expiryDate: Optional[datetime] = None
    isActive: bool

    @classmethod
    def from_entity(cls, payment: UserPayment) -> "UserPaymentDto":
        return cls(
            id=str(payment.id),
            userId=str(payment.user_id),
            tierId=str(payment.tier_id),
            amount=payment.amount,
            currency=payment.currency,
            paymentDate=payment.payment_date,
            expiryDate=payment.expiry_date,
            isActive=payment.is_active
        )


class PlayerQuestionDto(BaseModel):
    """Question as served to a player; never carries the correct index."""

    id: str
    questionText: str
    options: List[str]
    categoryId: str
    tierId: str
    rank: int
    languageCode: str

    @classmethod
    def from_view(cls, view: QuestionView) -> "PlayerQuestionDto":
        return cls(
            id=str(view.id),
            questionText=view.question_text,
            options=view.options,
            categoryId=str(view.category_id),
            tierId=str(view.tier_id),
            rank=view.rank,
            languageCode=view.language_code
        )


class AnswerResultDto(BaseModel):
    isCorrect: bool
    correctOptionIndex: int
    pointsEarned: int
    totalPoints: int

    @classmethod
    def from_result(cls, result: AnswerResult) -> "AnswerResultDto":
        return cls(
            isCorrect=result.is_correct,
            correctOptionIndex=result.correct_option_index,
            pointsEarned=result.points_earned,
            totalPoints=result.total_points
        )


class TierCompletionDto(BaseModel):
    bonusPoints: int
    completionPercentage: int
    totalPoints: int

    @classmethod
    def from_result(cls, result: TierCompletion) -> "TierCompletionDto":
        return cls(
            bonusPoints=result.bonus_points,
            completionPercentage=result.completion_percentage,
            totalPoints=result.total_points
        )


class PointsGrantDto(BaseModel):
    pointsAdded: int
    totalPoints: int
    taskCompleted: Optional[bool] = None

    @classmethod
    def from_result(cls, result: PointsGrant) -> "PointsGrantDto":
        return cls(
            pointsAdded=result.points_added,
            totalPoints=result.total_points,
            taskCompleted=result.task_completed
        )


class UserProgressDto(BaseModel):
    user: UserDto
    totalQuizzes: int
    totalScore: int
    averageScore: float
    todayActivities: int
