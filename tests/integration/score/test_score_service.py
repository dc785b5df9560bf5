import uuid
from datetime import timedelta

import pytest

from quizhub.core.exceptions.base import NotFoundError
from quizhub.core.service.score.score_service import ScoreService, clamp_limit
from quizhub.core.utils.clock import utcnow
from quizhub.infra.models import DailyActivityModel, QuizHistoryModel
from quizhub.infra.repository.progress_repository import ProgressRepository
from quizhub.infra.repository.user_repository import UserRepository


@pytest.fixture
def score_service(session) -> ScoreService:
    return ScoreService(UserRepository(session), ProgressRepository(session))


@pytest.fixture
async def ranked_users(user_factory):
    """Three users tied at the top and one behind"""
    users = []
    for index, points in enumerate([50, 50, 50, 10]):
        user, _ = await user_factory(f"player{index}@example.com", points=points)
        users.append(user)
    return users


def test_clamp_limit():
    assert clamp_limit(None) == 10
    assert clamp_limit(0) == 1
    assert clamp_limit(25) == 25
    assert clamp_limit(1000) == 100


async def test_leaderboard_rank_is_positional(score_service, ranked_users):
    leaderboard = await score_service.get_leaderboard()

    assert [rank for rank, _ in leaderboard] == [1, 2, 3, 4]
    assert [user.points for _, user in leaderboard] == [50, 50, 50, 10]
    # Ties keep sign-up order
    assert [user.id for _, user in leaderboard[:3]] == [u.id for u in ranked_users[:3]]


async def test_leaderboard_respects_limit(score_service, ranked_users):
    assert len(await score_service.get_leaderboard(2)) == 2


async def test_user_rank_is_competition_style(score_service, ranked_users):
    for user in ranked_users[:3]:
        rank, _ = await score_service.get_user_rank(user.id)
        assert rank == 1

    rank, user = await score_service.get_user_rank(ranked_users[3].id)
    assert rank == 4
    assert user.points == 10


async def test_user_rank_unknown_user(score_service):
    with pytest.raises(NotFoundError):
        await score_service.get_user_rank(uuid.uuid4())


async def test_history_merges_ledgers_newest_first(score_service, user_factory, session):
    user, _ = await user_factory()
    now = utcnow()
    session.add_all([
        QuizHistoryModel(user_id=user.id, question_id=uuid.uuid4(), score=10, completed_at=now - timedelta(minutes=3)),
        DailyActivityModel(user_id=user.id, activity_id="checkin", points=5, completed_at=now - timedelta(minutes=2)),
        QuizHistoryModel(user_id=user.id, question_id=uuid.uuid4(), score=0, completed_at=now - timedelta(minutes=1)),
    ])
    await session.commit()

    entries, total = await score_service.get_history(user.id, limit=2, offset=0)
    assert total == 3
    assert [(e["type"], e["score"]) for e in entries] == [("quiz", 0), ("daily", 5)]
    assert entries[1]["details"]["activityId"] == "checkin"

    entries, total = await score_service.get_history(user.id, limit=2, offset=2)
    assert [(e["type"], e["score"]) for e in entries] == [("quiz", 10)]


async def test_stats(score_service, user_factory, session):
    user, _ = await user_factory(points=25)
    session.add_all([
        QuizHistoryModel(user_id=user.id, question_id=uuid.uuid4(), score=10),
        QuizHistoryModel(user_id=user.id, question_id=uuid.uuid4(), score=0),
        DailyActivityModel(user_id=user.id, activity_id="checkin", points=5),
    ])
    await session.commit()

    stats = await score_service.get_stats(user.id)

    assert stats == {
        "totalQuizzes": 2,
        "totalScore": 10,
        "averageScore": 5,
        "highestScore": 10,
        "todayActivities": 1,
        "totalPoints": 25,
    }


async def test_stats_without_activity(score_service, user_factory):
    user, _ = await user_factory()
    stats = await score_service.get_stats(user.id)
    assert stats["totalQuizzes"] == 0
    assert stats["averageScore"] == 0
    assert stats["highestScore"] == 0
