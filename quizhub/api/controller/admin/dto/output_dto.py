"""
Output DTOs for admin endpoints.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from quizhub.core.service.auth.models.admin import Admin
from quizhub.api.controller.auth.dto.output_dto import TokenPairDto


class AdminProfileDto(BaseModel):
    id: str
    username: str
    email: str
    twoFAEnabled: bool
    lastLogin: Optional[datetime] = None

    @classmethod
    def from_entity(cls, admin: Admin) -> "AdminProfileDto":
        return cls(
            id=str(admin.id),
            username=admin.username,
            email=admin.email,
            twoFAEnabled=admin.requires_tfa,
            lastLogin=admin.last_login
        )


class AdminLoginResponseDto(BaseModel):
    """Tokens, or `requiresTfa` with the admin id to complete the second step."""

    requiresTfa: bool = False
    tempUserId: Optional[str] = None
    tokens: Optional[TokenPairDto] = None
    admin: Optional[AdminProfileDto] = None


class EnableTfaResponseDto(BaseModel):
    secret: str = Field(..., description="Base32 shared secret")
    otpauthUrl: str = Field(..., description="Provisioning URI")
    qrCode: str = Field(..., description="PNG data URL of the provisioning URI")


class DashboardStatsDto(BaseModel):
    totalUsers: int
    newUsers: int
    activeUsers: int


class DashboardUserDto(BaseModel):
    id: str
    username: Optional[str] = None
    email: str
    points: int
    ranking: int
    lastActive: datetime
    isActive: bool
    joinedDate: datetime
