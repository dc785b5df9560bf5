from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class Admin(BaseModel):
    """Admin account; secrets stay on the entity and never reach a DTO"""
    id: UUID
    email: str
    username: str
    password_hash: str
    is_active: bool = True
    twofa_security: bool = False
    twofa_secret: Optional[str] = None
    twofa_verified: bool = False
    refresh_token_hash: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @property
    def requires_tfa(self) -> bool:
        """Second factor is enforced only once enrolment was confirmed"""
        return self.twofa_security and self.twofa_verified and bool(self.twofa_secret)
