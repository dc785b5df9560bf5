"""
Score controller: leaderboard, own rank, history and statistics.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from quizhub.api.middleware.authentication.jwt_bearer import get_current_user, subject_id
from quizhub.api.models.response_models import ApiResponse, ok
from quizhub.core.dependencies import get_score_service
from quizhub.core.service.auth.models.token import TokenPayload
from quizhub.core.service.auth.models.user import User
from quizhub.core.service.score.score_service import ScoreService

router = APIRouter(prefix="/score", tags=["Score"])


class RankedUserDto(BaseModel):
    rank: int
    userId: str
    username: Optional[str] = None
    points: int
    tier: str

    @classmethod
    def build(cls, rank: int, user: User) -> "RankedUserDto":
        return cls(
            rank=rank,
            userId=str(user.id),
            username=user.username or user.telegram_id,
            points=user.points,
            tier=user.tier
        )


class HistoryEntryDto(BaseModel):
    type: str
    score: int
    date: datetime
    details: Dict[str, Any]


class HistoryPageDto(BaseModel):
    items: List[HistoryEntryDto]
    total: int
    limit: int
    offset: int


class ScoreStatsDto(BaseModel):
    totalQuizzes: int
    totalScore: int
    averageScore: float
    highestScore: int
    todayActivities: int
    totalPoints: int


@router.get("/leaderboard", response_model=ApiResponse[List[RankedUserDto]])
async def leaderboard(
    limit: Optional[int] = Query(None, description="Number of entries, default 10, max 100"),
    _: TokenPayload = Depends(get_current_user),
    score_service: ScoreService = Depends(get_score_service)
):
    """Top players by points; ranks are positions in the list."""
    ranked = await score_service.get_leaderboard(limit)
    return ok([RankedUserDto.build(rank, user) for rank, user in ranked], "Leaderboard fetched successfully")


@router.get("/rank", response_model=ApiResponse[RankedUserDto])
async def my_rank(
    token: TokenPayload = Depends(get_current_user),
    score_service: ScoreService = Depends(get_score_service)
):
    """One plus the number of players with strictly more points."""
    rank, user = await score_service.get_user_rank(subject_id(token))
    return ok(RankedUserDto.build(rank, user), "Rank fetched successfully")


@router.get("/history", response_model=ApiResponse[HistoryPageDto])
async def history(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    token: TokenPayload = Depends(get_current_user),
    score_service: ScoreService = Depends(get_score_service)
):
    entries, total = await score_service.get_history(subject_id(token), limit, offset)
    return ok(
        HistoryPageDto(
            items=[HistoryEntryDto(**entry) for entry in entries],
            total=total,
            limit=limit,
            offset=offset
        ),
        "History fetched successfully"
    )


@router.get("/stats", response_model=ApiResponse[ScoreStatsDto])
async def stats(
    token: TokenPayload = Depends(get_current_user),
    score_service: ScoreService = Depends(get_score_service)
):
    result = await score_service.get_stats(subject_id(token))
    return ok(ScoreStatsDto(**result), "Stats fetched successfully")
