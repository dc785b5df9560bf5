"""
User repository using SQLAlchemy ORM
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from quizhub.core.exceptions.base import ConflictError
from quizhub.core.service.auth.models.user import User, UserTier
from quizhub.core.utils.clock import ensure_utc, utcnow
from quizhub.infra.models import UserModel
from quizhub.core.logger.logger import get_logger

logger = get_logger(__name__)

# Columns a profile update may touch
MUTABLE_USER_FIELDS = frozenset({"username", "language_preference", "wallet_address", "telegram_id"})


class UserRepository:
    """Repository for user database operations using SQLAlchemy ORM"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: UserModel) -> User:
        """Convert SQLAlchemy model to Pydantic entity"""
        return User(
            id=model.id,
            email=model.email,
            telegram_id=model.telegram_id,
            username=model.username,
            language_preference=model.language_preference,
            wallet_address=model.wallet_address,
            points=model.points,
            tier=UserTier(model.tier),
            last_active=ensure_utc(model.last_active),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at)
        )

    async def _get_model(self, user_id: UUID) -> Optional[UserModel]:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        model = await self._get_model(user_id)
        return self._model_to_entity(model) if model else None

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.email == email.lower())
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def get_by_telegram_id(self, telegram_id: str) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.telegram_id == telegram_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def create(
        self,
        email: str,
        username: Optional[str] = None,
        telegram_id: Optional[str] = None
    ) -> User:
        """
        Create a new user

        Args:
            email: Verified email address
            username: Optional display name
            telegram_id: Optional Telegram account id

        Returns:
            Created user

        Raises:
            ConflictError: email or telegram id already taken
        """
        try:
            user = UserModel(
                email=email.lower(),
                username=username,
                telegram_id=telegram_id
            )
            self.session.add(user)
            await self.session.commit()

            logger.info(
                "New user created in database",
                extra={"user_id": str(user.id), "email": user.email}
            )
            return self._model_to_entity(user)

        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "User already exists",
                extra={"email": email, "error": str(e.orig)}
            )
            raise ConflictError("User with this email or Telegram id already exists")

    async def update_fields(self, user_id: UUID, changes: Dict[str, Any]) -> Optional[User]:
        """
        Apply whitelisted column changes to a user

        Returns:
            Updated user or None when the user does not exist
        """
        unknown = set(changes) - MUTABLE_USER_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        model = await self._get_model(user_id)
        if model is None:
            return None

        try:
            for field, value in changes.items():
                setattr(model, field, value)
            model.updated_at = utcnow()
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "User update violates a unique constraint",
                extra={"user_id": str(user_id), "error": str(e.orig)}
            )
            raise ConflictError("Telegram id is already linked to another user")

        logger.debug(
            "User updated",
            extra={"user_id": str(user_id), "fields": sorted(changes)}
        )
        return self._model_to_entity(model)

    async def touch(self, user_id: UUID) -> None:
        """Update last_active to now"""
        stmt = update(UserModel).where(UserModel.id == user_id).values(last_active=utcnow())
        await self.session.execute(stmt)
        await self.session.commit()

    async def list_by_points(self, limit: Optional[int] = None) -> List[User]:
        """Users by points descending; ties keep sign-up order"""
        stmt = select(UserModel).order_by(UserModel.points.desc(), UserModel.created_at.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def count_with_more_points(self, points: int) -> int:
        stmt = select(func.count()).select_from(UserModel).where(UserModel.points > points)
        return (await self.session.execute(stmt)).scalar_one()

    async def count_all(self) -> int:
        stmt = select(func.count()).select_from(UserModel)
        return (await self.session.execute(stmt)).scalar_one()

    async def count_created_since(self, since: datetime) -> int:
        stmt = select(func.count()).select_from(UserModel).where(UserModel.created_at >= since)
        return (await self.session.execute(stmt)).scalar_one()
