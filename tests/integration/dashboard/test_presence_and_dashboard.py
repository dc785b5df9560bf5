from datetime import timedelta

import pytest
from sqlalchemy import update

from quizhub.core.service.dashboard.dashboard_service import DashboardService
from quizhub.core.service.dashboard.presence import ActiveUserCache
from quizhub.core.utils.clock import utcnow
from quizhub.infra.models import UserModel
from quizhub.infra.repository.user_repository import UserRepository

TTL = 30 * 60


def test_entry_expires_after_ttl(presence, clock):
    presence.touch("u1", {"email": "a@example.com"})
    clock.advance(TTL - 1)
    assert presence.is_active("u1")

    clock.advance(1)
    assert not presence.is_active("u1")
    assert len(presence) == 0


def test_touch_extends_expiry(presence, clock):
    presence.touch("u1")
    clock.advance(TTL - 10)
    presence.touch("u1", {"username": "neo"})
    clock.advance(20)

    assert presence.is_active("u1")
    assert presence.get("u1") == {"username": "neo"}

    clock.advance(TTL)
    assert presence.get("u1") is None


def test_info_is_merged(presence):
    presence.touch("u1", {"email": "a@example.com"})
    presence.touch("u1", {"username": "neo"})
    assert presence.get("u1") == {"email": "a@example.com", "username": "neo"}


def test_active_ids(presence, clock):
    presence.touch("u1")
    clock.advance(60)
    presence.touch("u2")
    clock.advance(TTL - 30)

    assert presence.active_ids() == ["u2"]


def test_stale_heap_nodes_do_not_evict_refreshed_entries():
    now = [0.0]
    cache = ActiveUserCache(ttl_seconds=10, clock=lambda: now[0])
    for step in range(5):
        now[0] = step * 5.0
        cache.touch("u1")
    now[0] = 25.0
    assert cache.is_active("u1")
    now[0] = 30.0
    assert not cache.is_active("u1")


@pytest.fixture
def dashboard_service(session, presence) -> DashboardService:
    return DashboardService(UserRepository(session), presence)


async def test_dashboard_stats(dashboard_service, user_factory, session, presence):
    recent, _ = await user_factory("recent@example.com")
    old, _ = await user_factory("old@example.com")
    await session.execute(
        update(UserModel).where(UserModel.id == old.id).values(created_at=utcnow() - timedelta(days=3))
    )
    await session.commit()
    presence.touch(str(recent.id))

    stats = await dashboard_service.get_stats()

    assert stats == {"totalUsers": 2, "newUsers": 1, "activeUsers": 1}


async def test_dashboard_users_ranked_by_points(dashboard_service, user_factory, presence):
    low, _ = await user_factory("low@example.com", points=5, username="low")
    high, _ = await user_factory("high@example.com", points=40, telegram_id="4242")
    presence.touch(str(high.id))

    users = await dashboard_service.get_users()

    assert [(u["email"], u["ranking"]) for u in users] == [("high@example.com", 1), ("low@example.com", 2)]
    assert users[0]["username"] == "4242"
    assert users[0]["isActive"] is True
    assert users[1]["username"] == "low"
    assert users[1]["isActive"] is False
