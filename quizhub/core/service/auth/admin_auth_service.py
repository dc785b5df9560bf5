"""
Admin authentication: password login, optional TOTP second factor and
refresh-token rotation checked against a stored digest.

States: unauthenticated -> password verified -> (TFA required | authenticated).
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from quizhub.core.exceptions.base import (
    BadRequestError, ConflictError, ForbiddenError, NotFoundError, UnauthorizedError,
)
from quizhub.core.exceptions.handler import ServiceErrorCode
from quizhub.core.logger.logger import get_logger
from quizhub.core.service.auth.jwt_service import JWTService
from quizhub.core.service.auth.models.admin import Admin
from quizhub.core.service.auth.models.token import TokenResponse, TokenRole, TokenType
from quizhub.core.service.auth.utils import totp
from quizhub.core.service.auth.utils.crypto import hash_password, hash_token, token_matches, verify_password
from quizhub.core.utils.clock import utcnow
from quizhub.infra.config.settings import get_settings
from quizhub.infra.repository.admin_repository import AdminRepository

logger = get_logger(__name__)
settings = get_settings()


@dataclass
class LoginResult:
    """Either a token pair or a pending second-factor challenge"""
    admin: Admin
    tokens: Optional[TokenResponse] = None

    @property
    def requires_tfa(self) -> bool:
        return self.tokens is None


@dataclass
class TfaEnrollment:
    secret: str
    otpauth_url: str
    qr_code: str


class AdminAuthService:

    def __init__(self, admin_repository: AdminRepository, jwt_service: JWTService):
        self.admins = admin_repository
        self.jwt_service = jwt_service

    async def create_admin(self, email: str, username: str, password: str) -> Admin:
        if not settings.ADMIN_REGISTRATION_ENABLED:
            raise ForbiddenError("Admin registration is disabled")

        taken = await self.admins.exists(email, username)
        if taken:
            raise ConflictError(f"Admin with this {taken} already exists", ServiceErrorCode.ALREADY_EXISTS)

        return await self.admins.create(email, username, hash_password(password))

    async def _check_password(self, email: str, password: str) -> Admin:
        admin = await self.admins.get_by_email(email)
        if admin is None or not admin.is_active or not verify_password(password, admin.password_hash):
            logger.warning("Admin login rejected", extra={"email": email})
            raise UnauthorizedError("Invalid credentials")
        return admin

    async def _issue_tokens(self, admin: Admin, record_login: bool = True) -> TokenResponse:
        tokens = self.jwt_service.create_tokens(str(admin.id), TokenRole.ADMIN, {"email": admin.email})
        changes = {"refresh_token_hash": hash_token(tokens.refresh_token)}
        if record_login:
            changes["last_login"] = utcnow()
        await self.admins.update_fields(admin.id, changes)
        return tokens

    async def login(self, email: str, password: str) -> LoginResult:
        admin = await self._check_password(email, password)

        if admin.requires_tfa:
            logger.info("Admin login awaiting second factor", extra={"admin_id": str(admin.id)})
            return LoginResult(admin=admin)

        tokens = await self._issue_tokens(admin)
        logger.info("Admin logged in", extra={"admin_id": str(admin.id)})
        return LoginResult(admin=admin, tokens=tokens)

    async def login_with_tfa(self, email: str, password: str, code: str) -> LoginResult:
        admin = await self._check_password(email, password)

        if not admin.requires_tfa:
            raise UnauthorizedError("Two-factor authentication is not enabled", ServiceErrorCode.TFA_NOT_ENABLED)

        if not totp.verify_code(admin.twofa_secret, code):
            logger.warning("Invalid admin TFA code", extra={"admin_id": str(admin.id)})
            raise UnauthorizedError("Invalid two-factor code", ServiceErrorCode.INVALID_TFA_CODE)

        tokens = await self._issue_tokens(admin)
        logger.info("Admin logged in with second factor", extra={"admin_id": str(admin.id)})
        return LoginResult(admin=admin, tokens=tokens)

    async def get_admin(self, admin_id: UUID) -> Admin:
        admin = await self.admins.get_by_id(admin_id)
        if admin is None:
            raise NotFoundError("Admin not found")
        return admin

    async def enable_tfa(self, admin_id: UUID) -> TfaEnrollment:
        """Start enrolment; enforcement begins only after verify_tfa"""
        admin = await self.get_admin(admin_id)

        secret = totp.generate_secret()
        uri = totp.provisioning_uri(secret, admin.email)
        await self.admins.update_fields(admin.id, {
            "twofa_secret": secret,
            "twofa_security": True,
            "twofa_verified": False,
        })

        logger.info("Admin TFA enrolment started", extra={"admin_id": str(admin.id)})
        return TfaEnrollment(secret=secret, otpauth_url=uri, qr_code=totp.qr_data_url(uri))

    async def verify_tfa(self, admin_id: UUID, code: str) -> Admin:
        admin = await self.get_admin(admin_id)

        if not admin.twofa_secret:
            raise BadRequestError("Two-factor authentication has not been set up", ServiceErrorCode.TFA_NOT_ENABLED)

        if not totp.verify_code(admin.twofa_secret, code):
            raise UnauthorizedError("Invalid two-factor code", ServiceErrorCode.INVALID_TFA_CODE)

        logger.info("Admin TFA verified", extra={"admin_id": str(admin.id)})
        return await self.admins.update_fields(admin.id, {"twofa_security": True, "twofa_verified": True})

    async def disable_tfa(self, admin_id: UUID, code: Optional[str]) -> Admin:
        admin = await self.get_admin(admin_id)

        if admin.requires_tfa and not totp.verify_code(admin.twofa_secret, code or ""):
            raise UnauthorizedError("Invalid two-factor code", ServiceErrorCode.INVALID_TFA_CODE)

        logger.info("Admin TFA disabled", extra={"admin_id": str(admin.id)})
        return await self.admins.update_fields(admin.id, {
            "twofa_secret": None,
            "twofa_security": False,
            "twofa_verified": False,
        })

    async def refresh(self, refresh_token: str) -> TokenResponse:
        """Rotate the pair when the token matches the digest stored at last issue"""
        token_data = await self.jwt_service.verify_token(refresh_token, TokenType.REFRESH, TokenRole.ADMIN)

        admin = await self.admins.get_by_id(UUID(token_data.sub))
        if admin is None or not admin.refresh_token_hash or not token_matches(refresh_token, admin.refresh_token_hash):
            logger.warning("Admin refresh token rejected", extra={"sub": token_data.sub})
            raise UnauthorizedError("Invalid refresh token", ServiceErrorCode.TOKEN_REVOKED)

        return await self._issue_tokens(admin, record_login=False)

    async def logout(self, admin_id: UUID) -> None:
        await self.admins.update_fields(admin_id, {"refresh_token_hash": None})
        logger.info("Admin logged out", extra={"admin_id": str(admin_id)})
