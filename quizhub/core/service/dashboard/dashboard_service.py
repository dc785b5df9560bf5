from datetime import timedelta
from typing import Any, Dict, List

from quizhub.core.service.dashboard.presence import ActiveUserCache
from quizhub.core.utils.clock import utcnow
from quizhub.infra.config.settings import get_settings
from quizhub.infra.repository.user_repository import UserRepository

settings = get_settings()


class DashboardService:
    """Admin dashboard figures; activity comes from the in-process presence cache"""

    def __init__(self, user_repository: UserRepository, presence: ActiveUserCache):
        self.users = user_repository
        self.presence = presence

    async def get_stats(self) -> Dict[str, int]:
        since = utcnow() - timedelta(hours=settings.NEW_USER_WINDOW_HOURS)
        return {
            "totalUsers": await self.users.count_all(),
            "newUsers": await self.users.count_created_since(since),
            "activeUsers": len(self.presence),
        }

    async def get_users(self) -> List[Dict[str, Any]]:
        users = await self.users.list_by_points()
        active = set(self.presence.active_ids())
        return [
            {
                "id": str(user.id),
                "username": user.telegram_id or user.username,
                "email": user.email,
                "points": user.points,
                "ranking": position,
                "lastActive": user.last_active,
                "isActive": str(user.id) in active,
                "joinedDate": user.created_at,
            }
            for position, user in enumerate(users, start=1)
        ]
