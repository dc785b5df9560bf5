"""
User payment repository using SQLAlchemy ORM
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.core.service.quiz.models.content import UserPayment
from quizhub.core.utils.clock import ensure_utc
from quizhub.infra.models import UserPaymentModel
from quizhub.core.logger.logger import get_logger

logger = get_logger(__name__)


class PaymentRepository:
    """Repository for tier payments"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: UserPaymentModel) -> UserPayment:
        return UserPayment(
            id=model.id,
            user_id=model.user_id,
            tier_id=model.tier_id,
            amount=Decimal(model.amount),
            currency=model.currency,
            payment_date=ensure_utc(model.payment_date),
            expiry_date=ensure_utc(model.expiry_date),
            is_active=model.is_active
        )

    async def create(
        self,
        user_id: UUID,
        tier_id: UUID,
        amount: Decimal,
        currency: str = "usd",
        expiry_date: Optional[datetime] = None,
        is_active: bool = True
    ) -> UserPayment:
        try:
            payment = UserPaymentModel(
                user_id=user_id,
                tier_id=tier_id,
                amount=amount,
                currency=currency.lower(),
                expiry_date=expiry_date,
                is_active=is_active
            )
            self.session.add(payment)
            await self.session.commit()

            logger.info(
                "Payment recorded",
                extra={
                    "payment_id": str(payment.id),
                    "user_id": str(user_id),
                    "tier_id": str(tier_id),
                    "amount": str(amount)
                }
            )
            return self._model_to_entity(payment)

        except Exception as e:
            await self.session.rollback()
            logger.error(
                "Failed to record payment",
                extra={"user_id": str(user_id), "tier_id": str(tier_id), "error": str(e)}
            )
            raise

    async def list_for_user(self, user_id: UUID) -> List[UserPayment]:
        result = await self.session.execute(
            select(UserPaymentModel)
            .where(UserPaymentModel.user_id == user_id)
            .order_by(UserPaymentModel.payment_date.desc())
        )
        return [self._model_to_entity(m) for m in result.scalars().all()]

    async def has_active_payment(self, user_id: UUID, tier_id: UUID, now: datetime) -> bool:
        """Active payment for (user, tier) with no expiry or an expiry after `now`"""
        stmt = (
            select(UserPaymentModel.id)
            .where(
                UserPaymentModel.user_id == user_id,
                UserPaymentModel.tier_id == tier_id,
                UserPaymentModel.is_active.is_(True),
                or_(UserPaymentModel.expiry_date.is_(None), UserPaymentModel.expiry_date > now)
            )
            .limit(1)
        )
        return (await self.session.execute(stmt)).first() is not None
