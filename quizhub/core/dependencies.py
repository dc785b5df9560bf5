"""
FastAPI dependency injection functions.
Clean, maintainable dependency resolution using FastAPI's native DI system.
"""

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.infra.config.redis import get_redis
from quizhub.infra.database import get_async_session
from quizhub.infra.repository.user_repository import UserRepository
from quizhub.infra.repository.otp_repository import OtpRepository
from quizhub.infra.repository.admin_repository import AdminRepository
from quizhub.infra.repository.quiz_repository import QuizRepository
from quizhub.infra.repository.payment_repository import PaymentRepository
from quizhub.infra.repository.progress_repository import ProgressRepository
from quizhub.core.service.auth.cache.token_store import TokenStore
from quizhub.core.service.auth.jwt_service import JWTService
from quizhub.core.service.auth.otp_service import OtpAuthService
from quizhub.core.service.auth.admin_auth_service import AdminAuthService
from quizhub.core.service.email.email_service import EmailSender, get_email_sender
from quizhub.core.service.dashboard.presence import ActiveUserCache, get_active_user_cache
from quizhub.core.service.dashboard.dashboard_service import DashboardService
from quizhub.core.service.quiz.content_service import QuizContentService
from quizhub.core.service.quiz.delivery_service import QuizDeliveryService
from quizhub.core.service.score.score_service import ScoreService


async def get_redis_client() -> Redis:
    """Get Redis client dependency."""
    return await get_redis()


async def get_token_store(redis_client: Redis = Depends(get_redis_client)) -> TokenStore:
    """Get token store with Redis dependency."""
    return TokenStore(redis_client)


async def get_jwt_service(token_store: TokenStore = Depends(get_token_store)) -> JWTService:
    """JWT service able to revoke tokens (refresh flows)."""
    return JWTService(token_store)


def get_email_sender_dependency() -> EmailSender:
    return get_email_sender()


def get_presence_cache() -> ActiveUserCache:
    return get_active_user_cache()


async def get_user_repository(session: AsyncSession = Depends(get_async_session)) -> UserRepository:
    return UserRepository(session)


async def get_otp_repository(session: AsyncSession = Depends(get_async_session)) -> OtpRepository:
    return OtpRepository(session)


async def get_admin_repository(session: AsyncSession = Depends(get_async_session)) -> AdminRepository:
    return AdminRepository(session)


async def get_quiz_repository(session: AsyncSession = Depends(get_async_session)) -> QuizRepository:
    return QuizRepository(session)


async def get_payment_repository(session: AsyncSession = Depends(get_async_session)) -> PaymentRepository:
    return PaymentRepository(session)


async def get_progress_repository(session: AsyncSession = Depends(get_async_session)) -> ProgressRepository:
    return ProgressRepository(session)


async def get_otp_auth_service(
    user_repository: UserRepository = Depends(get_user_repository),
    otp_repository: OtpRepository = Depends(get_otp_repository),
    email_sender: EmailSender = Depends(get_email_sender_dependency),
    jwt_service: JWTService = Depends(get_jwt_service),
    presence: ActiveUserCache = Depends(get_presence_cache)
) -> OtpAuthService:
    """Get player OTP auth service with its repositories and collaborators."""
    return OtpAuthService(user_repository, otp_repository, email_sender, jwt_service, presence)


async def get_admin_auth_service(
    admin_repository: AdminRepository = Depends(get_admin_repository)
) -> AdminAuthService:
    """Admin refresh rotation is checked against the stored digest, not the Redis blacklist."""
    return AdminAuthService(admin_repository, JWTService())


async def get_quiz_content_service(
    quiz_repository: QuizRepository = Depends(get_quiz_repository),
    payment_repository: PaymentRepository = Depends(get_payment_repository),
    user_repository: UserRepository = Depends(get_user_repository)
) -> QuizContentService:
    return QuizContentService(quiz_repository, payment_repository, user_repository)


async def get_quiz_delivery_service(
    quiz_repository: QuizRepository = Depends(get_quiz_repository),
    user_repository: UserRepository = Depends(get_user_repository),
    payment_repository: PaymentRepository = Depends(get_payment_repository),
    progress_repository: ProgressRepository = Depends(get_progress_repository),
    presence: ActiveUserCache = Depends(get_presence_cache)
) -> QuizDeliveryService:
    return QuizDeliveryService(
        quiz_repository, user_repository, payment_repository, progress_repository, presence
    )


async def get_score_service(
    user_repository: UserRepository = Depends(get_user_repository),
    progress_repository: ProgressRepository = Depends(get_progress_repository)
) -> ScoreService:
    return ScoreService(user_repository, progress_repository)


async def get_dashboard_service(
    user_repository: UserRepository = Depends(get_user_repository),
    presence: ActiveUserCache = Depends(get_presence_cache)
) -> DashboardService:
    return DashboardService(user_repository, presence)
