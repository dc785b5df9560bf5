"""
Output DTOs for player authentication endpoints.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from quizhub.core.service.auth.models.token import TokenResponse
from quizhub.core.service.auth.models.user import User


class UserDto(BaseModel):
    """Public projection of a user."""

    id: str
    email: str
    telegramId: Optional[str] = None
    username: Optional[str] = None
    languagePreference: str
    points: int
    walletAddress: Optional[str] = None
    tier: str
    lastActive: datetime
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_entity(cls, user: User) -> "UserDto":
        return cls(
            id=str(user.id),
            email=user.email,
            telegramId=user.telegram_id,
            username=user.username,
            languagePreference=user.language_preference,
            points=user.points,
            walletAddress=user.wallet_address,
            tier=user.tier,
            lastActive=user.last_active,
            createdAt=user.created_at,
            updatedAt=user.updated_at
        )


class TokenPairDto(BaseModel):
    accessToken: str = Field(..., description="JWT access token")
    refreshToken: str = Field(..., description="JWT refresh token")
    tokenType: str = Field(default="bearer")
    expiresIn: int = Field(..., description="Access token lifetime in seconds")

    @classmethod
    def from_tokens(cls, tokens: TokenResponse) -> "TokenPairDto":
        return cls(
            accessToken=tokens.access_token,
            refreshToken=tokens.refresh_token,
            tokenType=tokens.token_type,
            expiresIn=tokens.expires_in
        )


class AuthResponseDto(TokenPairDto):
    """Tokens plus the signed-in user."""

    user: UserDto

    @classmethod
    def build(cls, tokens: TokenResponse, user: User) -> "AuthResponseDto":
        return cls(**TokenPairDto.from_tokens(tokens).model_dump(), user=UserDto.from_entity(user))
