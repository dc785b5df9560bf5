"""
Input DTOs for player authentication endpoints.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from quizhub.core.service.auth.models.user import LanguageCode


class EmailRequestDto(BaseModel):
    """DTO for signup and email signin requests."""

    email: EmailStr = Field(..., description="Email address the code is sent to")


class VerifyOtpRequestDto(BaseModel):
    """DTO for OTP verification."""

    email: EmailStr
    otp: str = Field(..., min_length=4, max_length=12, description="Code received by email")
    username: Optional[str] = Field(None, max_length=100)
    telegramId: Optional[str] = Field(None, max_length=64)

    @field_validator("otp", "telegramId", mode="before")
    @classmethod
    def coerce_to_string(cls, v):
        # Clients send numeric codes and Telegram ids as JSON numbers
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("otp")
    @classmethod
    def validate_otp(cls, v):
        v = v.strip()
        if not v.isdigit():
            raise ValueError("OTP must contain digits only")
        return v


class RefreshTokenRequestDto(BaseModel):
    refreshToken: str = Field(..., min_length=1)


class UpdateProfileRequestDto(BaseModel):
    """Only these fields can be changed; anything else is rejected."""

    model_config = ConfigDict(extra="forbid")

    username: Optional[str] = Field(None, min_length=1, max_length=100)
    languagePreference: Optional[LanguageCode] = None
    walletAddress: Optional[str] = Field(None, max_length=255)
    telegramId: Optional[str] = Field(None, max_length=64)

    @field_validator("telegramId", mode="before")
    @classmethod
    def coerce_telegram_id(cls, v):
        if isinstance(v, int):
            return str(v)
        return v

    def to_changes(self) -> Dict[str, Any]:
        """Explicitly set fields mapped to user columns"""
        columns = {
            "username": "username",
            "languagePreference": "language_preference",
            "walletAddress": "wallet_address",
            "telegramId": "telegram_id",
        }
        changes = {}
        for field, value in self.model_dump(exclude_unset=True).items():
            if isinstance(value, LanguageCode):
                value = value.value
            changes[columns[field]] = value
        return changes
