"""
Admin repository using SQLAlchemy ORM
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from quizhub.core.exceptions.base import ConflictError
from quizhub.core.service.auth.models.admin import Admin
from quizhub.core.utils.clock import ensure_utc, utcnow
from quizhub.infra.models import AdminModel
from quizhub.core.logger.logger import get_logger

logger = get_logger(__name__)

MUTABLE_ADMIN_FIELDS = frozenset({
    "twofa_security", "twofa_secret", "twofa_verified",
    "refresh_token_hash", "last_login", "is_active",
})


class AdminRepository:
    """Repository for admin accounts"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: AdminModel) -> Admin:
        return Admin(
            id=model.id,
            email=model.email,
            username=model.username,
            password_hash=model.password_hash,
            is_active=model.is_active,
            twofa_security=model.twofa_security,
            twofa_secret=model.twofa_secret,
            twofa_verified=model.twofa_verified,
            refresh_token_hash=model.refresh_token_hash,
            last_login=ensure_utc(model.last_login),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at)
        )

    async def get_by_id(self, admin_id: UUID) -> Optional[Admin]:
        result = await self.session.execute(select(AdminModel).where(AdminModel.id == admin_id))
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def get_by_email(self, email: str) -> Optional[Admin]:
        result = await self.session.execute(select(AdminModel).where(AdminModel.email == email.lower()))
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def exists(self, email: str, username: str) -> Optional[str]:
        """Name of the first taken identifier, or None"""
        stmt = select(AdminModel.email, AdminModel.username).where(
            or_(AdminModel.email == email.lower(), AdminModel.username == username)
        )
        rows = (await self.session.execute(stmt)).all()
        if any(row.email == email.lower() for row in rows):
            return "email"
        return "username" if rows else None

    async def create(self, email: str, username: str, password_hash: str) -> Admin:
        try:
            admin = AdminModel(
                email=email.lower(),
                username=username,
                password_hash=password_hash
            )
            self.session.add(admin)
            await self.session.commit()

            logger.info("Admin account created", extra={"admin_id": str(admin.id), "username": username})
            return self._model_to_entity(admin)

        except IntegrityError as e:
            await self.session.rollback()
            logger.warning("Admin already exists", extra={"email": email, "error": str(e.orig)})
            raise ConflictError("Admin with this email or username already exists")

    async def update_fields(self, admin_id: UUID, changes: Dict[str, Any]) -> Optional[Admin]:
        unknown = set(changes) - MUTABLE_ADMIN_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        result = await self.session.execute(select(AdminModel).where(AdminModel.id == admin_id))
        model = result.scalar_one_or_none()
        if model is None:
            return None

        for field, value in changes.items():
            setattr(model, field, value)
        model.updated_at = utcnow()
        await self.session.commit()
        return self._model_to_entity(model)
