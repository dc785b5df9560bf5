"""
Leaderboard, rank, history and statistics.

The leaderboard rank is positional (ties get consecutive ranks); the
individual rank is competition style (1 + users with strictly more points).
The two definitions intentionally differ when points tie.
"""

from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from quizhub.core.exceptions.base import NotFoundError
from quizhub.core.service.auth.models.user import User
from quizhub.core.utils.clock import utc_day_bounds
from quizhub.infra.config.settings import get_settings
from quizhub.infra.repository.progress_repository import ProgressRepository
from quizhub.infra.repository.user_repository import UserRepository

settings = get_settings()


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.LEADERBOARD_DEFAULT_LIMIT
    return max(1, min(limit, settings.LEADERBOARD_MAX_LIMIT))


class ScoreService:

    def __init__(self, user_repository: UserRepository, progress_repository: ProgressRepository):
        self.users = user_repository
        self.progress = progress_repository

    async def _get_user(self, user_id: UUID) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_leaderboard(self, limit: Optional[int] = None) -> List[Tuple[int, User]]:
        users = await self.users.list_by_points(clamp_limit(limit))
        return [(position, user) for position, user in enumerate(users, start=1)]

    async def get_user_rank(self, user_id: UUID) -> Tuple[int, User]:
        user = await self._get_user(user_id)
        higher = await self.users.count_with_more_points(user.points)
        return higher + 1, user

    async def get_history(self, user_id: UUID, limit: int = 20, offset: int = 0) -> Tuple[List[Dict[str, Any]], int]:
        """
        Quiz answers and daily tasks merged newest first, paginated

        Returns:
            (page of entries, total entry count)
        """
        await self._get_user(user_id)
        window = offset + limit

        entries: List[Dict[str, Any]] = [
            {
                "type": "quiz",
                "score": item.score,
                "date": item.completed_at,
                "details": {"questionId": str(item.question_id),
                            "categoryId": str(item.category_id) if item.category_id else None},
            }
            for item in await self.progress.recent_history(user_id, window)
        ]
        entries.extend(
            {
                "type": "daily",
                "score": item.points,
                "date": item.completed_at,
                "details": {"activityId": item.activity_id, "reason": item.reason},
            }
            for item in await self.progress.recent_activities(user_id, window)
        )
        entries.sort(key=lambda entry: entry["date"], reverse=True)

        total = await self.progress.count_entries(user_id)
        return entries[offset:window], total

    async def get_stats(self, user_id: UUID) -> Dict[str, Any]:
        user = await self._get_user(user_id)
        total_quizzes, total_score, highest = await self.progress.quiz_totals(user_id)
        start, end = utc_day_bounds()
        today = await self.progress.count_activities_between(user_id, start, end)
        average = total_score / total_quizzes if total_quizzes else 0
        return {
            "totalQuizzes": total_quizzes,
            "totalScore": total_score,
            "averageScore": round(average, 2),
            "highestScore": highest,
            "todayActivities": today,
            "totalPoints": user.points,
        }
