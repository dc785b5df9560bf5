"""
Bearer token guards for player and admin routes
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from quizhub.core.exceptions.base import UnauthorizedError
from quizhub.core.exceptions.handler import ServiceErrorCode
from quizhub.core.logger.logger import get_logger
from quizhub.core.service.auth.jwt_service import JWTService
from quizhub.core.service.auth.models.token import TokenPayload, TokenRole, TokenType

logger = get_logger(__name__)


class CustomHTTPBearer(HTTPBearer):
    """HTTPBearer that reports a missing or malformed header as a 401 service error"""

    async def __call__(self, request: Request) -> Optional[HTTPAuthorizationCredentials]:
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            raise UnauthorizedError("Not authenticated", ServiceErrorCode.INVALID_TOKEN)

        scheme, _, credentials = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not credentials.strip():
            logger.warning("Invalid authorization header", extra={"path": request.url.path})
            raise UnauthorizedError("Invalid authentication scheme", ServiceErrorCode.INVALID_TOKEN)

        return HTTPAuthorizationCredentials(scheme=scheme, credentials=credentials.strip())


bearer_scheme = CustomHTTPBearer(auto_error=True)


async def _verify_access(credentials: HTTPAuthorizationCredentials, role: Optional[TokenRole]) -> TokenPayload:
    return await JWTService().verify_token(credentials.credentials, TokenType.ACCESS, role)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)
) -> TokenPayload:
    """Any valid access token, player or admin"""
    return await _verify_access(credentials, None)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)
) -> TokenPayload:
    return await _verify_access(credentials, TokenRole.USER)


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)
) -> TokenPayload:
    return await _verify_access(credentials, TokenRole.ADMIN)


def subject_id(token: TokenPayload) -> UUID:
    try:
        return UUID(token.sub)
    except ValueError:
        raise UnauthorizedError("Invalid token subject", ServiceErrorCode.INVALID_TOKEN)
