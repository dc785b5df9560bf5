from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from quizhub.infra.config.settings import settings
from quizhub.infra.config.redis import close_redis_pool
from quizhub.infra.database import get_database_manager
from quizhub.core.logger.logger import logger
from quizhub.core.exceptions.handler import ServiceError, GlobalErrorHandler
from quizhub.api.router import health
from quizhub.api.controller.auth import auth_controller
from quizhub.api.controller.admin import admin_auth_controller, dashboard_controller
from quizhub.api.controller.quiz import content_controller, quiz_controller
from quizhub.api.controller.score import score_controller
from quizhub.api.middleware.security.rate_limiter import EnhancedRateLimitMiddleware
from quizhub.api.middleware.logging.request_logging import RequestLoggingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting API",
        extra={"service": settings.APP_NAME, "version": settings.APP_VERSION}
    )
    if settings.DB_AUTO_CREATE:
        await get_database_manager().init_models()
    try:
        yield
    finally:
        logger.info(
            "Shutting down API",
            extra={"service": settings.APP_NAME, "version": settings.APP_VERSION}
        )
        await get_database_manager().close()
        await close_redis_pool()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="""
QuizHub quiz and rewards API.

## Services
- **Authentication**: Email OTP and Telegram sign-in for players, password + TOTP for admins
- **Quiz**: Categories, tiers, multilingual questions, paid tier access
- **Score**: Points, leaderboard, history and statistics
- **Dashboard**: User totals and live activity for admins

## Authentication
All protected endpoints require JWT Bearer token authentication.
        """,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
        max_age=600,  # 10 minutes
    )

    # Rate limiting middleware
    app.add_middleware(EnhancedRateLimitMiddleware)

    # Request logging middleware (added last so it wraps everything else)
    app.add_middleware(RequestLoggingMiddleware)

    # Add centralized error handlers
    app.add_exception_handler(ServiceError, GlobalErrorHandler.service_error_handler)
    app.add_exception_handler(StarletteHTTPException, GlobalErrorHandler.http_exception_handler)
    app.add_exception_handler(RequestValidationError, GlobalErrorHandler.validation_error_handler)
    app.add_exception_handler(Exception, GlobalErrorHandler.general_exception_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(health.router, prefix="/api/v1")
    app.include_router(auth_controller.router)
    app.include_router(admin_auth_controller.router)
    app.include_router(dashboard_controller.router)
    app.include_router(quiz_controller.router)
    app.include_router(content_controller.router)
    app.include_router(score_controller.router)

    return app
