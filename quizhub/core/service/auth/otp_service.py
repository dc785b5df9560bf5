"""
Email OTP authentication for players.

Flow: request a code (signup or signin) -> code emailed, stored with a
10 minute expiry -> verify the code -> user created or linked, token pair
issued. One live code per email; a new request replaces the previous one.
"""

from datetime import timedelta
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from quizhub.core.exceptions.base import ConflictError, NotFoundError, UnauthorizedError
from quizhub.core.exceptions.handler import ServiceErrorCode
from quizhub.core.logger.logger import get_logger
from quizhub.core.service.auth.jwt_service import JWTService
from quizhub.core.service.auth.models.token import TokenResponse, TokenRole, TokenType
from quizhub.core.service.auth.models.user import User
from quizhub.core.service.auth.utils.crypto import codes_match, generate_numeric_code
from quizhub.core.service.dashboard.presence import ActiveUserCache
from quizhub.core.service.email.email_service import EmailSender
from quizhub.core.utils.clock import utcnow
from quizhub.infra.config.settings import get_settings
from quizhub.infra.repository.otp_repository import OtpRepository
from quizhub.infra.repository.user_repository import UserRepository

logger = get_logger(__name__)
settings = get_settings()

OTP_SUBJECT = "Your OTP Code"


def _otp_bodies(code: str) -> Tuple[str, str]:
    minutes = settings.OTP_EXPIRY_MINUTES
    text = f"Your OTP code is: {code}. It will expire in {minutes} minutes."
    html = (
        "<div style=\"font-family: Arial, sans-serif;\">"
        "<h2>Your verification code</h2>"
        f"<p style=\"font-size: 24px; letter-spacing: 4px;\"><strong>{code}</strong></p>"
        f"<p>It will expire in {minutes} minutes.</p>"
        "</div>"
    )
    return text, html


class OtpAuthService:
    """Player authentication by emailed one-time code"""

    def __init__(
        self,
        user_repository: UserRepository,
        otp_repository: OtpRepository,
        email_sender: EmailSender,
        jwt_service: JWTService,
        presence: ActiveUserCache
    ):
        self.users = user_repository
        self.otps = otp_repository
        self.email_sender = email_sender
        self.jwt_service = jwt_service
        self.presence = presence

    async def _issue_code(self, email: str) -> None:
        code = generate_numeric_code(settings.OTP_LENGTH)
        expires_at = utcnow() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)
        await self.otps.upsert(email, code, expires_at)

        text, html = _otp_bodies(code)
        await self.email_sender.send(email, OTP_SUBJECT, text, html)

        logger.info("OTP issued", extra={"email": email, "expires_at": expires_at.isoformat()})

    async def request_otp(self, email: str) -> None:
        """Signup: send a code to an email that has no account yet"""
        if await self.users.get_by_email(email):
            raise ConflictError("User already exists", ServiceErrorCode.ALREADY_EXISTS)
        await self._issue_code(email)

    async def request_signin_otp(self, email: str) -> None:
        """Signin: send a code to an existing account"""
        if await self.users.get_by_email(email) is None:
            raise NotFoundError("User not found")
        await self._issue_code(email)

    def _issue_tokens(self, user: User) -> TokenResponse:
        claims: Dict[str, Any] = {"email": user.email, "telegram_id": user.telegram_id}
        return self.jwt_service.create_tokens(str(user.id), TokenRole.USER, claims)

    async def verify_otp(
        self,
        email: str,
        code: str,
        telegram_id: Optional[str] = None,
        username: Optional[str] = None
    ) -> Tuple[TokenResponse, User]:
        """
        Consume a code and sign the user in.

        Checks run in a fixed order: missing record, expiry (the stale record is
        deleted), then code mismatch (the record is kept for a retry).
        """
        record = await self.otps.get(email)
        if record is None:
            raise UnauthorizedError("OTP not found", ServiceErrorCode.OTP_NOT_FOUND)

        if utcnow() > record.expires_at:
            await self.otps.delete(email)
            logger.info("Expired OTP removed", extra={"email": email})
            raise UnauthorizedError("OTP expired", ServiceErrorCode.OTP_EXPIRED)

        if not codes_match(code, record.code):
            logger.warning("OTP mismatch", extra={"email": email})
            raise UnauthorizedError("Invalid OTP", ServiceErrorCode.INVALID_OTP)

        await self.otps.delete(email)

        if telegram_id:
            owner = await self.users.get_by_telegram_id(telegram_id)
            if owner is not None and owner.email != email.lower():
                raise ConflictError("Telegram id is already linked to another user")

        user = await self.users.get_by_email(email)
        if user is None:
            user = await self.users.create(email, username=username, telegram_id=telegram_id)
        elif telegram_id and user.telegram_id != telegram_id:
            user = await self.users.update_fields(user.id, {"telegram_id": telegram_id})

        self.presence.touch(str(user.id), {"email": user.email, "username": user.username})
        return self._issue_tokens(user), user

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        """Rotate a refresh token: the presented one is revoked, a fresh pair issued"""
        token_data = await self.jwt_service.verify_token(refresh_token, TokenType.REFRESH, TokenRole.USER)

        user = await self.users.get_by_id(UUID(token_data.sub))
        if user is None:
            raise UnauthorizedError("User not found", ServiceErrorCode.INVALID_TOKEN)

        await self.jwt_service.revoke(token_data, reason="Refresh token rotation")
        return self._issue_tokens(user)

    async def signin_by_telegram(self, telegram_id: str) -> Tuple[TokenResponse, User]:
        user = await self.users.get_by_telegram_id(telegram_id)
        if user is None:
            raise NotFoundError("User not found")

        await self.users.touch(user.id)
        self.presence.touch(str(user.id), {"email": user.email, "username": user.username})
        return self._issue_tokens(user), user

    async def get_profile(self, user_id: UUID) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: UUID, changes: Dict[str, Any]) -> User:
        """Apply whitelisted profile changes; telegram id stays unique"""
        telegram_id = changes.get("telegram_id")
        if telegram_id:
            owner = await self.users.get_by_telegram_id(telegram_id)
            if owner is not None and owner.id != user_id:
                raise ConflictError("Telegram id is already linked to another user")

        user = await self.users.update_fields(user_id, changes) if changes else await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        logger.info("Profile updated", extra={"user_id": str(user_id), "fields": sorted(changes)})
        return user
