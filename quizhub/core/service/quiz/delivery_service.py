"""
Player-side quiz delivery: tier access gate, random question selection,
answer scoring, tier completion bonus and daily-task points.
"""

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from uuid import UUID

from quizhub.core.exceptions.base import BadRequestError, ConflictError, NotFoundError, PaymentRequiredError
from quizhub.core.exceptions.handler import ServiceErrorCode
from quizhub.core.logger.logger import get_logger
from quizhub.core.service.auth.models.user import User
from quizhub.core.service.dashboard.presence import ActiveUserCache
from quizhub.core.utils.clock import utc_day_bounds, utcnow
from quizhub.infra.config.settings import get_settings
from quizhub.infra.repository.payment_repository import PaymentRepository
from quizhub.infra.repository.progress_repository import ProgressRepository
from quizhub.infra.repository.quiz_repository import QuizRepository
from quizhub.infra.repository.user_repository import UserRepository

logger = get_logger(__name__)
settings = get_settings()

# (minimum completion percentage, bonus points), highest first
TIER_BONUS_TABLE = ((90, 100), (70, 50), (50, 25))


def tier_bonus(percentage: float) -> int:
    for threshold, bonus in TIER_BONUS_TABLE:
        if percentage >= threshold:
            return bonus
    return 0


@dataclass
class QuestionView:
    """A question as shown to a player; the correct index is never included"""
    id: UUID
    question_text: str
    options: List[str]
    category_id: UUID
    tier_id: UUID
    rank: int
    language_code: str


@dataclass
class AnswerResult:
    is_correct: bool
    correct_option_index: int
    points_earned: int
    total_points: int


@dataclass
class TierCompletion:
    bonus_points: int
    completion_percentage: int
    total_points: int


@dataclass
class PointsGrant:
    points_added: int
    total_points: int
    task_completed: Optional[bool] = None


class QuizDeliveryService:

    def __init__(
        self,
        quiz_repository: QuizRepository,
        user_repository: UserRepository,
        payment_repository: PaymentRepository,
        progress_repository: ProgressRepository,
        presence: ActiveUserCache,
        rng: Optional[random.Random] = None
    ):
        self.quiz = quiz_repository
        self.users = user_repository
        self.payments = payment_repository
        self.progress = progress_repository
        self.presence = presence
        self.rng = rng or random.SystemRandom()

    async def _get_user(self, user_id: UUID) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _mark_active(self, user: User) -> None:
        self.presence.touch(str(user.id), {"email": user.email, "username": user.username})

    async def check_tier_access(self, user_id: UUID, tier_id: UUID) -> bool:
        """Free tiers are always open; paid tiers need an active, unexpired payment"""
        tier = await self.quiz.get_tier_by_id(tier_id)
        if tier is None:
            raise NotFoundError("Tier not found")
        if not tier.is_paid:
            return True
        return await self.payments.has_active_payment(user_id, tier_id, utcnow())

    async def get_random_question(self, user_id: UUID, category_id: UUID, tier_id: UUID) -> QuestionView:
        user = await self._get_user(user_id)

        if not await self.check_tier_access(user_id, tier_id):
            logger.info(
                "Paid tier access denied",
                extra={"user_id": str(user_id), "tier_id": str(tier_id)}
            )
            raise PaymentRequiredError()

        question_ids = await self.quiz.question_ids(category_id, tier_id)
        if not question_ids:
            raise NotFoundError("No questions found for this category/tier")

        question = await self.quiz.get_question(self.rng.choice(question_ids))
        view = QuestionView(
            id=question.id,
            question_text=question.question_text,
            options=list(question.options),
            category_id=question.category_id,
            tier_id=question.tier_id,
            rank=question.rank,
            language_code=settings.DEFAULT_LANGUAGE
        )

        language = user.language_preference
        if language and language != settings.DEFAULT_LANGUAGE:
            translation = await self.quiz.get_translation(question.id, language)
            if translation is not None:
                view.question_text = translation.question_text
                view.options = list(translation.options)
                view.language_code = language

        self._mark_active(user)
        return view

    async def submit_answer(self, user_id: UUID, question_id: UUID, selected_index: int) -> AnswerResult:
        question = await self.quiz.get_question(question_id)
        if question is None:
            raise NotFoundError("Question not found")

        is_correct = selected_index == question.correct_option_index
        points = settings.ANSWER_POINTS if is_correct else 0

        total = await self.progress.record_answer(user_id, question.id, question.category_id, points)
        if total is None:
            raise NotFoundError("User not found")

        self.presence.touch(str(user_id))
        logger.info(
            "Answer submitted",
            extra={"user_id": str(user_id), "question_id": str(question_id), "is_correct": is_correct}
        )
        return AnswerResult(
            is_correct=is_correct,
            correct_option_index=question.correct_option_index,
            points_earned=points,
            total_points=total
        )

    async def complete_tier(
        self,
        user_id: UUID,
        tier_id: UUID,
        total_correct: int,
        total_questions: int
    ) -> TierCompletion:
        if total_questions <= 0:
            raise BadRequestError("totalQuestions must be greater than zero")
        if total_correct < 0 or total_correct > total_questions:
            raise BadRequestError("totalCorrectAnswers must be between 0 and totalQuestions")
        if await self.quiz.get_tier_by_id(tier_id) is None:
            raise NotFoundError("Tier not found")

        percentage = total_correct / total_questions * 100
        bonus = tier_bonus(percentage)

        total = await self.progress.grant_points(user_id, bonus)
        if total is None:
            raise NotFoundError("User not found")

        self.presence.touch(str(user_id))
        logger.info(
            "Tier completed",
            extra={"user_id": str(user_id), "tier_id": str(tier_id), "bonus_points": bonus}
        )
        return TierCompletion(
            bonus_points=bonus,
            completion_percentage=round(percentage),
            total_points=total
        )

    async def add_points(
        self,
        user_id: UUID,
        points: int,
        daily_task_id: Optional[str] = None,
        reason: Optional[str] = None
    ) -> PointsGrant:
        """Grant points; a daily task id can be credited once per UTC day"""
        if points < 0:
            raise BadRequestError("Points must not be negative")

        if not daily_task_id:
            total = await self.progress.grant_points(user_id, points)
            if total is None:
                raise NotFoundError("User not found")
            return PointsGrant(points_added=points, total_points=total)

        await self._get_user(user_id)
        start, end = utc_day_bounds()
        if await self.progress.has_daily_task_between(user_id, daily_task_id, start, end):
            raise ConflictError("Daily task already completed today", ServiceErrorCode.DAILY_TASK_COMPLETED)

        total = await self.progress.record_daily_task(user_id, daily_task_id, points, reason)
        if total is None:
            raise NotFoundError("User not found")

        self.presence.touch(str(user_id))
        return PointsGrant(points_added=points, total_points=total, task_completed=True)

    async def get_user_progress(self, user_id: UUID) -> Dict[str, Any]:
        user = await self._get_user(user_id)
        total_quizzes, total_score, _ = await self.progress.quiz_totals(user_id)
        start, end = utc_day_bounds()
        today = await self.progress.count_activities_between(user_id, start, end)
        average = total_score / total_quizzes if total_quizzes else 0
        return {
            "user": user,
            "total_quizzes": total_quizzes,
            "total_score": total_score,
            "average_score": round(average, 2),
            "today_activities": today,
        }
