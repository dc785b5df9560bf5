import pytest

from quizhub.api.router import health


class _Database:
    def __init__(self, error: Exception = None):
        self.error = error

    async def ping(self) -> bool:
        if self.error:
            raise self.error
        return True


@pytest.fixture
def dependencies_up(monkeypatch, redis_client):
    async def fake_get_redis():
        return redis_client

    monkeypatch.setattr(health, "get_redis", fake_get_redis)
    monkeypatch.setattr(health, "get_database_manager", lambda: _Database())


@pytest.mark.parametrize("path", ["/health", "/api/v1/health"])
async def test_health_check_contract(client, dependencies_up, path):
    """Verifies the response schema and format of the health endpoint"""
    response = await client.get(path)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "QuizHub"
    assert isinstance(data["version"], str)
    assert data["services"]["database"]["status"] == "healthy"
    assert data["services"]["redis"]["status"] == "healthy"
    assert data["timestamp"]


async def test_health_reports_degraded_dependency(client, dependencies_up, monkeypatch):
    monkeypatch.setattr(health, "get_database_manager", lambda: _Database(ConnectionError("refused")))

    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["services"]["database"]["status"] == "unhealthy"
    assert "refused" in data["services"]["database"]["message"]


async def test_request_id_is_echoed(client, dependencies_up):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.json()["request_id"] == "req-123"


async def test_request_id_is_generated(client, dependencies_up):
    response = await client.get("/health")
    assert response.headers["X-Request-ID"]
