from datetime import datetime, timedelta, timezone

import jwt
import pytest

from quizhub.core.exceptions.base import UnauthorizedError
from quizhub.core.exceptions.handler import ServiceErrorCode
from quizhub.core.service.auth.cache.token_store import TokenStore
from quizhub.core.service.auth.jwt_service import JWTService
from quizhub.core.service.auth.models.token import TokenRole, TokenType
from quizhub.infra.config.settings import get_settings

settings = get_settings()

SUBJECT = "2d1f0a44-3f4b-4a53-9f0c-2ad4d7b1c001"


@pytest.fixture
def jwt_service(redis_client) -> JWTService:
    return JWTService(TokenStore(redis_client))


async def test_create_tokens(jwt_service):
    """Should create valid access and refresh tokens"""
    tokens = jwt_service.create_tokens(SUBJECT, TokenRole.USER, {"email": "a@example.com"})

    assert tokens.token_type == "bearer"
    assert 0 < tokens.expires_in <= settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    access = await jwt_service.verify_token(tokens.access_token, TokenType.ACCESS)
    refresh = await jwt_service.verify_token(tokens.refresh_token, TokenType.REFRESH)

    assert access.sub == refresh.sub == SUBJECT
    assert access.role == TokenRole.USER
    assert access.email == "a@example.com"
    assert access.jti != refresh.jti


async def test_verify_token_with_wrong_type(jwt_service):
    """Should reject token when used with wrong type"""
    tokens = jwt_service.create_tokens(SUBJECT, TokenRole.USER)

    with pytest.raises(UnauthorizedError) as exc_info:
        await jwt_service.verify_token(tokens.access_token, TokenType.REFRESH)
    assert exc_info.value.status_code == 401
    assert "Invalid token type" in exc_info.value.message


async def test_verify_token_with_wrong_role(jwt_service):
    tokens = jwt_service.create_tokens(SUBJECT, TokenRole.USER)

    with pytest.raises(UnauthorizedError):
        await jwt_service.verify_token(tokens.access_token, TokenType.ACCESS, TokenRole.ADMIN)


async def test_verify_expired_token(jwt_service):
    """Should reject an expired token with TOKEN_EXPIRED"""
    token, _ = jwt_service._create_token(
        SUBJECT, TokenRole.USER, TokenType.ACCESS, expires_delta=timedelta(seconds=-1)
    )

    with pytest.raises(UnauthorizedError) as exc_info:
        await jwt_service.verify_token(token, TokenType.ACCESS)
    assert exc_info.value.code == ServiceErrorCode.TOKEN_EXPIRED


async def test_verify_token_signed_with_other_key(jwt_service):
    now = datetime.now(timezone.utc)
    forged = jwt.encode(
        {"sub": SUBJECT, "role": "admin", "type": "access", "jti": "x",
         "iat": now, "exp": now + timedelta(minutes=5)},
        "another-secret-key-of-sufficient-length",
        algorithm=settings.JWT_ALGORITHM
    )

    with pytest.raises(UnauthorizedError) as exc_info:
        await jwt_service.verify_token(forged, TokenType.ACCESS)
    assert exc_info.value.code == ServiceErrorCode.INVALID_TOKEN


async def test_verify_malformed_token(jwt_service):
    with pytest.raises(UnauthorizedError):
        await jwt_service.verify_token("not-a-jwt", TokenType.ACCESS)


async def test_revoked_token_is_rejected(jwt_service, redis_client):
    tokens = jwt_service.create_tokens(SUBJECT, TokenRole.USER)
    payload = await jwt_service.verify_token(tokens.refresh_token, TokenType.REFRESH)

    await jwt_service.revoke(payload, reason="test")

    assert await redis_client.ttl(f"blacklist:token:{payload.jti}") > 0
    with pytest.raises(UnauthorizedError) as exc_info:
        await jwt_service.verify_token(tokens.refresh_token, TokenType.REFRESH)
    assert exc_info.value.code == ServiceErrorCode.TOKEN_REVOKED


async def test_revoke_without_store():
    service = JWTService()
    tokens = service.create_tokens(SUBJECT, TokenRole.USER)
    payload = await service.verify_token(tokens.refresh_token, TokenType.REFRESH)

    with pytest.raises(RuntimeError):
        await service.revoke(payload)


class _BrokenRedis:
    async def exists(self, key):
        raise ConnectionError("redis is down")


async def test_blacklist_check_fails_open():
    store = TokenStore(_BrokenRedis())
    assert await store.is_blacklisted("any-jti") is False
