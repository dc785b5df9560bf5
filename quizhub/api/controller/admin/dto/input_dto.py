"""
Input DTOs for admin authentication endpoints.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, EmailStr, Field, field_validator


def _normalize_code(v):
    if isinstance(v, int):
        v = str(v).zfill(6)
    if isinstance(v, str):
        v = v.strip()
        if not v.isdigit():
            raise ValueError("Code must contain digits only")
    return v


TotpCode = Annotated[
    str,
    BeforeValidator(_normalize_code),
    Field(min_length=6, max_length=6, description="Current authenticator code"),
]


class CreateAdminRequestDto(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if not v.strip():
            raise ValueError("Username cannot be empty")
        return v.strip()


class AdminLoginRequestDto(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminTfaLoginRequestDto(AdminLoginRequestDto):
    code: TotpCode


class TfaCodeRequestDto(BaseModel):
    code: TotpCode


class DisableTfaRequestDto(BaseModel):
    code: Optional[TotpCode] = None


class AdminRefreshRequestDto(BaseModel):
    refreshToken: str = Field(..., min_length=1)
