import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError
from pydantic import ValidationError

from quizhub.core.exceptions.base import UnauthorizedError
from quizhub.core.exceptions.handler import ServiceErrorCode
from quizhub.core.logger.logger import get_logger
from quizhub.core.service.auth.cache.token_store import TokenStore
from quizhub.core.service.auth.models.token import TokenPayload, TokenResponse, TokenRole, TokenType
from quizhub.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class JWTService:
    """Service for handling JWT token operations"""

    def __init__(self, token_store: Optional[TokenStore] = None):
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.access_token_expire_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
        self.refresh_token_expire_days = settings.REFRESH_TOKEN_EXPIRE_DAYS
        self.token_store = token_store

    def _create_token(
        self,
        subject: str,
        role: TokenRole,
        token_type: TokenType,
        claims: Optional[Dict[str, Any]] = None,
        expires_delta: Optional[timedelta] = None
    ) -> Tuple[str, datetime]:
        """
        Create a JWT token with the given parameters
        Returns the token string and its expiration datetime
        """
        if expires_delta is None:
            if token_type == TokenType.ACCESS:
                expires_delta = timedelta(minutes=self.access_token_expire_minutes)
            else:
                expires_delta = timedelta(days=self.refresh_token_expire_days)

        issued_at = datetime.now(timezone.utc)
        expires_at = issued_at + expires_delta

        to_encode = TokenPayload(
            sub=subject,
            role=role,
            exp=expires_at,
            iat=issued_at,
            type=token_type,
            jti=str(uuid.uuid4()),
            **(claims or {})
        )

        encoded_jwt = jwt.encode(
            to_encode.model_dump(mode="json", exclude_none=True) | {
                "exp": expires_at,
                "iat": issued_at,
            },
            self.secret_key,
            algorithm=self.algorithm
        )

        return encoded_jwt, expires_at

    def create_tokens(
        self,
        subject: str,
        role: TokenRole,
        claims: Optional[Dict[str, Any]] = None
    ) -> TokenResponse:
        """Generate new access and refresh token pair"""
        access_token, access_exp = self._create_token(subject, role, TokenType.ACCESS, claims)
        refresh_token, _ = self._create_token(subject, role, TokenType.REFRESH, claims)

        expires_in = int((access_exp - datetime.now(timezone.utc)).total_seconds())

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=expires_in
        )

    async def verify_token(
        self,
        token: str,
        expected_type: TokenType,
        expected_role: Optional[TokenRole] = None
    ) -> TokenPayload:
        """
        Verify a JWT token and return its payload
        Raises UnauthorizedError if the token is invalid, expired, of the wrong kind or revoked
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            token_data = TokenPayload(**payload)

        except ExpiredSignatureError:
            logger.info("Token expired", extra={"token_type": expected_type.value})
            raise UnauthorizedError("Token has expired", ServiceErrorCode.TOKEN_EXPIRED)

        except (InvalidTokenError, ValidationError) as e:
            logger.warning("Invalid token", extra={"token_type": expected_type.value, "error": str(e)})
            raise UnauthorizedError("Invalid token", ServiceErrorCode.INVALID_TOKEN)

        if token_data.type != expected_type:
            logger.warning(
                "Token type mismatch",
                extra={"expected_type": expected_type.value, "actual_type": token_data.type.value}
            )
            raise UnauthorizedError("Invalid token type", ServiceErrorCode.INVALID_TOKEN)

        if expected_role is not None and token_data.role != expected_role:
            logger.warning(
                "Token role mismatch",
                extra={"expected_role": expected_role.value, "actual_role": token_data.role.value}
            )
            raise UnauthorizedError("Invalid token", ServiceErrorCode.INVALID_TOKEN)

        if self.token_store is not None and await self.token_store.is_blacklisted(token_data.jti):
            logger.warning("Blacklisted token used", extra={"jti": token_data.jti, "sub": token_data.sub})
            raise UnauthorizedError("Token has been revoked", ServiceErrorCode.TOKEN_REVOKED)

        return token_data

    async def revoke(self, token_data: TokenPayload, reason: Optional[str] = None) -> None:
        """Blacklist an already verified token until it expires"""
        if self.token_store is None:
            raise RuntimeError("Token revocation requires a token store")
        await self.token_store.add_to_blacklist(jti=token_data.jti, exp=token_data.exp, reason=reason)
