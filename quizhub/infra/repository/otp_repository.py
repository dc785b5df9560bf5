"""
OTP repository using SQLAlchemy ORM
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.core.utils.clock import ensure_utc
from quizhub.infra.models import OtpModel
from quizhub.core.logger.logger import get_logger

logger = get_logger(__name__)


class OtpRecord(BaseModel):
    email: str
    code: str
    expires_at: datetime


class OtpRepository:
    """One live code per email; a new request overwrites the previous code"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(self, email: str, code: str, expires_at: datetime) -> None:
        email = email.lower()
        try:
            result = await self.session.execute(select(OtpModel).where(OtpModel.email == email))
            record = result.scalar_one_or_none()
            if record is None:
                self.session.add(OtpModel(email=email, code=code, expires_at=expires_at))
            else:
                record.code = code
                record.expires_at = expires_at
            await self.session.commit()

            logger.debug("OTP stored", extra={"email": email, "expires_at": expires_at.isoformat()})

        except Exception as e:
            await self.session.rollback()
            logger.error("Failed to store OTP", extra={"email": email, "error": str(e)})
            raise

    async def get(self, email: str) -> Optional[OtpRecord]:
        result = await self.session.execute(select(OtpModel).where(OtpModel.email == email.lower()))
        record = result.scalar_one_or_none()
        if record is None:
            return None
        return OtpRecord(email=record.email, code=record.code, expires_at=ensure_utc(record.expires_at))

    async def delete(self, email: str) -> None:
        await self.session.execute(delete(OtpModel).where(OtpModel.email == email.lower()))
        await self.session.commit()
