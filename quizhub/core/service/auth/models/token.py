from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class TokenPayload(BaseModel):
    """JWT token payload structure"""
    sub: str = Field(..., description="User or admin id")
    role: TokenRole = Field(..., description="Principal kind the token was issued to")
    email: Optional[str] = Field(None, description="Principal email")
    telegram_id: Optional[str] = Field(None, description="Linked Telegram id (users only)")
    exp: datetime = Field(..., description="Token expiration timestamp")
    iat: datetime = Field(..., description="Token issued at timestamp")
    type: TokenType = Field(..., description="Token type (access or refresh)")
    jti: str = Field(..., description="Unique token identifier for blacklisting")


class TokenResponse(BaseModel):
    """Response model for token generation"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until access token expires


class TokenBlacklist(BaseModel):
    """Model for blacklisted tokens"""
    jti: str
    exp: datetime
    blacklisted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reason: Optional[str] = None
