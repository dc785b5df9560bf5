"""
Shared test configuration and fixtures.

The app runs against an in-memory SQLite database (aiosqlite), an in-process
fake Redis and a recording email sender. Environment overrides are applied
before any quizhub module reads its settings.
"""

import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["EMAIL_BACKEND"] = "console"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import re
from typing import AsyncGenerator, List, Optional, Tuple

import fakeredis.aioredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from quizhub.app import create_app
from quizhub.core.dependencies import (
    get_email_sender_dependency, get_presence_cache, get_redis_client,
)
from quizhub.core.service.auth.jwt_service import JWTService
from quizhub.core.service.auth.models.token import TokenRole
from quizhub.core.service.auth.utils.crypto import hash_password
from quizhub.core.service.dashboard.presence import ActiveUserCache
from quizhub.core.service.email.email_service import EmailSender
from quizhub.infra.database import get_async_session
from quizhub.infra.models import Base
from quizhub.infra.repository.admin_repository import AdminRepository
from quizhub.infra.repository.progress_repository import ProgressRepository
from quizhub.infra.repository.user_repository import UserRepository


class RecordingEmailSender(EmailSender):
    """Keeps every message instead of sending it"""

    def __init__(self):
        self.outbox: List[Tuple[str, str, str, Optional[str]]] = []

    async def send(self, to: str, subject: str, body: str, html: Optional[str] = None) -> None:
        self.outbox.append((to, subject, body, html))

    def last_code(self, email: str) -> str:
        for to, _, body, _ in reversed(self.outbox):
            if to == email:
                return re.search(r"\b(\d{4,12})\b", body).group(1)
        raise AssertionError(f"No email sent to {email}")


class FakeClock:
    """Monotonic clock the tests move by hand"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def redis_client():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def presence(clock) -> ActiveUserCache:
    return ActiveUserCache(ttl_seconds=30 * 60, clock=clock)


@pytest.fixture
def app(session_factory, redis_client, email_sender, presence):
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def override_redis():
        return redis_client

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_redis_client] = override_redis
    app.dependency_overrides[get_email_sender_dependency] = lambda: email_sender
    app.dependency_overrides[get_presence_cache] = lambda: presence
    return app


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


def bearer(access_token: str) -> dict:
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def user_factory(session):
    """Create a user row and return (user, auth headers)"""
    repository = UserRepository(session)

    async def create(email: str = "player@example.com", points: int = 0, **fields):
        user = await repository.create(email, username=fields.pop("username", None),
                                       telegram_id=fields.pop("telegram_id", None))
        if fields:
            user = await repository.update_fields(user.id, fields)
        if points:
            await ProgressRepository(session).grant_points(user.id, points)
            user = await repository.get_by_id(user.id)
        tokens = JWTService().create_tokens(str(user.id), TokenRole.USER, {"email": user.email})
        return user, bearer(tokens.access_token)

    return create


@pytest.fixture
async def admin_headers(session) -> dict:
    admin = await AdminRepository(session).create("admin@example.com", "admin", hash_password("sup3r-secret"))
    tokens = JWTService().create_tokens(str(admin.id), TokenRole.ADMIN, {"email": admin.email})
    return bearer(tokens.access_token)
