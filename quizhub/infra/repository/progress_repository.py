"""
Progress repository: point grants plus the quiz history and daily activity ledgers
"""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.core.service.quiz.models.ledger import QuizHistoryEntry, DailyActivity
from quizhub.core.utils.clock import ensure_utc, utcnow
from quizhub.infra.models import UserModel, QuizHistoryModel, DailyActivityModel
from quizhub.core.logger.logger import get_logger

logger = get_logger(__name__)


class ProgressRepository:
    """Writes that move a user's points, each paired with its ledger row in one commit"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _history_to_entity(self, model: QuizHistoryModel) -> QuizHistoryEntry:
        return QuizHistoryEntry(
            id=model.id,
            user_id=model.user_id,
            question_id=model.question_id,
            category_id=model.category_id,
            score=model.score,
            completed_at=ensure_utc(model.completed_at)
        )

    def _activity_to_entity(self, model: DailyActivityModel) -> DailyActivity:
        return DailyActivity(
            id=model.id,
            user_id=model.user_id,
            activity_id=model.activity_id,
            points=model.points,
            reason=model.reason,
            completed_at=ensure_utc(model.completed_at)
        )

    async def _increment_points(self, user_id: UUID, points: int) -> Optional[int]:
        """Atomic `points = points + n`; returns the new total or None for an unknown user"""
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                points=UserModel.points + points,
                last_active=utcnow(),
                updated_at=utcnow()
            )
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        total = await self.session.execute(select(UserModel.points).where(UserModel.id == user_id))
        return total.scalar_one()

    async def record_answer(
        self,
        user_id: UUID,
        question_id: UUID,
        category_id: Optional[UUID],
        points: int
    ) -> Optional[int]:
        """
        Credit an answer and append its history row

        Returns:
            New point total, None when the user does not exist
        """
        try:
            total = await self._increment_points(user_id, points)
            if total is None:
                await self.session.rollback()
                return None

            self.session.add(QuizHistoryModel(
                user_id=user_id,
                question_id=question_id,
                category_id=category_id,
                score=points
            ))
            await self.session.commit()
            return total

        except Exception as e:
            await self.session.rollback()
            logger.error(
                "Failed to record answer",
                extra={"user_id": str(user_id), "question_id": str(question_id), "error": str(e)}
            )
            raise

    async def grant_points(self, user_id: UUID, points: int) -> Optional[int]:
        """Plain point grant with no ledger row"""
        total = await self._increment_points(user_id, points)
        if total is None:
            await self.session.rollback()
            return None
        await self.session.commit()
        return total

    async def record_daily_task(
        self,
        user_id: UUID,
        activity_id: str,
        points: int,
        reason: Optional[str] = None
    ) -> Optional[int]:
        """Credit a daily task and append its activity row"""
        try:
            total = await self._increment_points(user_id, points)
            if total is None:
                await self.session.rollback()
                return None

            self.session.add(DailyActivityModel(
                user_id=user_id,
                activity_id=activity_id,
                points=points,
                reason=reason
            ))
            await self.session.commit()

            logger.info(
                "Daily task recorded",
                extra={"user_id": str(user_id), "activity_id": activity_id, "points": points}
            )
            return total

        except Exception as e:
            await self.session.rollback()
            logger.error(
                "Failed to record daily task",
                extra={"user_id": str(user_id), "activity_id": activity_id, "error": str(e)}
            )
            raise

    async def has_daily_task_between(
        self,
        user_id: UUID,
        activity_id: str,
        start: datetime,
        end: datetime
    ) -> bool:
        stmt = (
            select(func.count())
            .select_from(DailyActivityModel)
            .where(
                DailyActivityModel.user_id == user_id,
                DailyActivityModel.activity_id == activity_id,
                DailyActivityModel.completed_at >= start,
                DailyActivityModel.completed_at < end
            )
        )
        return (await self.session.execute(stmt)).scalar_one() > 0

    async def count_activities_between(self, user_id: UUID, start: datetime, end: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(DailyActivityModel)
            .where(
                DailyActivityModel.user_id == user_id,
                DailyActivityModel.completed_at >= start,
                DailyActivityModel.completed_at < end
            )
        )
        return (await self.session.execute(stmt)).scalar_one()

    async def quiz_totals(self, user_id: UUID) -> Tuple[int, int, int]:
        """(answered count, summed score, highest single score)"""
        stmt = select(
            func.count(QuizHistoryModel.id),
            func.coalesce(func.sum(QuizHistoryModel.score), 0),
            func.coalesce(func.max(QuizHistoryModel.score), 0)
        ).where(QuizHistoryModel.user_id == user_id)
        count, total, highest = (await self.session.execute(stmt)).one()
        return int(count), int(total), int(highest)

    async def recent_history(self, user_id: UUID, limit: int) -> List[QuizHistoryEntry]:
        stmt = (
            select(QuizHistoryModel)
            .where(QuizHistoryModel.user_id == user_id)
            .order_by(QuizHistoryModel.completed_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._history_to_entity(m) for m in result.scalars().all()]

    async def recent_activities(self, user_id: UUID, limit: int) -> List[DailyActivity]:
        stmt = (
            select(DailyActivityModel)
            .where(DailyActivityModel.user_id == user_id)
            .order_by(DailyActivityModel.completed_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._activity_to_entity(m) for m in result.scalars().all()]

    async def count_entries(self, user_id: UUID) -> int:
        """Rows across both ledgers"""
        quiz = select(func.count()).select_from(QuizHistoryModel).where(QuizHistoryModel.user_id == user_id)
        daily = select(func.count()).select_from(DailyActivityModel).where(DailyActivityModel.user_id == user_id)
        return (await self.session.execute(quiz)).scalar_one() + (await self.session.execute(daily)).scalar_one()
