from datetime import timedelta

import pytest

from quizhub.api.middleware.security import rate_limiter as rate_limiter_module
from quizhub.api.middleware.security.rate_limiter import EnhancedRateLimiter
from quizhub.infra.config.settings import settings


@pytest.fixture
def limiting(monkeypatch):
    monkeypatch.setattr(rate_limiter_module.settings, "RATE_LIMIT_ENABLED", True)


def test_endpoint_limit_and_window():
    limiter = EnhancedRateLimiter()
    limit = limiter.endpoint_limits["/auth/signup"]

    for _ in range(limit):
        assert not limiter.is_rate_limited("1.2.3.4", "/auth/signup")[0]
        limiter.add_request("1.2.3.4", "/auth/signup")

    is_limited, count, reported_limit, _ = limiter.is_rate_limited("1.2.3.4", "/auth/signup")
    assert is_limited
    assert count == limit
    assert reported_limit == limit

    # Other IPs and endpoints are counted separately
    assert not limiter.is_rate_limited("5.6.7.8", "/auth/signup")[0]
    assert not limiter.is_rate_limited("1.2.3.4", "/quiz/categories")[0]

    # Requests older than a minute fall out of the window
    for ip_requests in limiter.endpoint_requests["/auth/signup"].values():
        ip_requests[:] = [ts - timedelta(minutes=2) for ts in ip_requests]
    assert not limiter.is_rate_limited("1.2.3.4", "/auth/signup")[0]


def test_failed_attempts_block_ip():
    limiter = EnhancedRateLimiter()

    for _ in range(settings.SUSPICIOUS_IP_THRESHOLD - 1):
        limiter.record_failed_attempt("9.9.9.9")
    assert limiter.is_blocked("9.9.9.9") is None

    limiter.record_failed_attempt("9.9.9.9")
    assert limiter.is_blocked("9.9.9.9") is not None

    limiter.blocked_ips["9.9.9.9"] -= timedelta(minutes=settings.IP_BLOCK_DURATION + 1)
    assert limiter.is_blocked("9.9.9.9") is None


async def test_rate_limit_exceeded(client, limiting):
    """Signup answers 429 once the per-minute limit is used up"""
    for index in range(settings.RATE_LIMIT_AUTH_SIGNUP):
        response = await client.post("/auth/signup", json={"email": f"p{index}@example.com"})
        assert response.status_code == 200
        assert "X-RateLimit-Limit" in response.headers

    response = await client.post("/auth/signup", json={"email": "late@example.com"})

    assert response.status_code == 429
    assert "retry-after" in response.headers
    assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"


async def test_failed_logins_block_ip(client, limiting):
    credentials = {"email": "nobody@example.com", "password": "wrong"}
    for _ in range(settings.SUSPICIOUS_IP_THRESHOLD):
        response = await client.post("/admin/auth/login", json=credentials)
        assert response.status_code == 401

    response = await client.get("/quiz/categories")

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "IP_BLOCKED"


async def test_cors_headers(client):
    """CORS preflight is answered for allowed origins"""
    origin = settings.ALLOWED_ORIGINS[0]
    headers = {
        "Origin": origin,
        "Access-Control-Request-Method": "GET",
        "Access-Control-Request-Headers": "content-type,authorization",
    }
    response = await client.options("/quiz/categories", headers=headers)

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == origin
