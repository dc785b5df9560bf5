import pytest

from quizhub import app as app_module
from quizhub.app import create_app
from quizhub.infra.config import redis as redis_config


class _Database:
    def __init__(self):
        self.created = False
        self.closed = False

    async def init_models(self):
        self.created = True

    async def close(self):
        self.closed = True


@pytest.fixture
def database(monkeypatch):
    database = _Database()
    monkeypatch.setattr(app_module, "get_database_manager", lambda: database)
    return database


async def test_lifespan_creates_tables_and_releases_connections(monkeypatch, database):
    closed = []

    async def fake_close_redis_pool():
        closed.append(True)

    monkeypatch.setattr(app_module, "close_redis_pool", fake_close_redis_pool)
    monkeypatch.setattr(app_module.settings, "DB_AUTO_CREATE", True)
    app = create_app()

    async with app.router.lifespan_context(app):
        assert database.created
        assert not database.closed

    assert database.closed
    assert closed == [True]


async def test_lifespan_skips_table_creation_when_disabled(monkeypatch, database):
    async def fake_close_redis_pool():
        pass

    monkeypatch.setattr(app_module, "close_redis_pool", fake_close_redis_pool)
    monkeypatch.setattr(app_module.settings, "DB_AUTO_CREATE", False)
    app = create_app()

    async with app.router.lifespan_context(app):
        pass

    assert not database.created
    assert database.closed


async def test_close_redis_pool_resets_cached_pool():
    redis_config.get_redis_pool.cache_clear()
    await redis_config.close_redis_pool()
    assert redis_config.get_redis_pool.cache_info().currsize == 0

    pool = redis_config.get_redis_pool()
    assert pool.max_connections == redis_config.settings.REDIS_MAX_CONNECTIONS
    assert pool.connection_kwargs["socket_timeout"] == redis_config.settings.REDIS_SOCKET_TIMEOUT

    await redis_config.close_redis_pool()

    assert redis_config.get_redis_pool.cache_info().currsize == 0
    assert redis_config.get_redis_pool() is not pool
    redis_config.get_redis_pool.cache_clear()
