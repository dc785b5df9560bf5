"""
Player authentication controller: email OTP signup/signin, Telegram signin,
token refresh and profile.
"""

from fastapi import APIRouter, Depends

from quizhub.api.controller.auth.dto.input_dto import (
    EmailRequestDto, VerifyOtpRequestDto, RefreshTokenRequestDto, UpdateProfileRequestDto,
)
from quizhub.api.controller.auth.dto.output_dto import AuthResponseDto, TokenPairDto, UserDto
from quizhub.api.middleware.authentication.jwt_bearer import get_current_user, subject_id
from quizhub.api.models.response_models import ApiResponse, ok
from quizhub.core.dependencies import get_otp_auth_service
from quizhub.core.logger.logger import get_logger
from quizhub.core.service.auth.models.token import TokenPayload
from quizhub.core.service.auth.otp_service import OtpAuthService

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=ApiResponse[None])
async def signup(
    request: EmailRequestDto,
    auth_service: OtpAuthService = Depends(get_otp_auth_service)
):
    """
    Send a one-time code to a new email address.

    Fails with 409 when an account already exists; use /auth/signin/email then.
    """
    await auth_service.request_otp(request.email)
    return ok(message="OTP sent successfully")


@router.post("/signin/email", response_model=ApiResponse[None])
async def signin_email(
    request: EmailRequestDto,
    auth_service: OtpAuthService = Depends(get_otp_auth_service)
):
    """Send a one-time code to an existing account."""
    await auth_service.request_signin_otp(request.email)
    return ok(message="OTP sent successfully")


@router.post("/verify-otp", response_model=ApiResponse[AuthResponseDto])
async def verify_otp(
    request: VerifyOtpRequestDto,
    auth_service: OtpAuthService = Depends(get_otp_auth_service)
):
    """
    Verify the emailed code and return access and refresh tokens.

    Creates the account on first verification and links the Telegram id when supplied.
    """
    tokens, user = await auth_service.verify_otp(
        email=request.email,
        code=request.otp,
        telegram_id=request.telegramId,
        username=request.username
    )
    logger.info("User signed in with OTP", extra={"user_id": str(user.id)})
    return ok(AuthResponseDto.build(tokens, user), "OTP verified successfully")


@router.post("/refresh-token", response_model=ApiResponse[TokenPairDto])
async def refresh_token(
    request: RefreshTokenRequestDto,
    auth_service: OtpAuthService = Depends(get_otp_auth_service)
):
    """Exchange a refresh token for a new pair; the presented token is revoked."""
    tokens = await auth_service.refresh_token(request.refreshToken)
    return ok(TokenPairDto.from_tokens(tokens), "Token refreshed successfully")


@router.get("/signin/{telegram_id}", response_model=ApiResponse[AuthResponseDto])
async def signin_telegram(
    telegram_id: str,
    auth_service: OtpAuthService = Depends(get_otp_auth_service)
):
    tokens, user = await auth_service.signin_by_telegram(telegram_id)
    return ok(AuthResponseDto.build(tokens, user), "User signed in successfully")


@router.get("/profile", response_model=ApiResponse[UserDto])
async def get_profile(
    token: TokenPayload = Depends(get_current_user),
    auth_service: OtpAuthService = Depends(get_otp_auth_service)
):
    user = await auth_service.get_profile(subject_id(token))
    return ok(UserDto.from_entity(user), "Profile fetched successfully")


@router.patch("/profile", response_model=ApiResponse[UserDto])
async def update_profile(
    request: UpdateProfileRequestDto,
    token: TokenPayload = Depends(get_current_user),
    auth_service: OtpAuthService = Depends(get_otp_auth_service)
):
    user = await auth_service.update_profile(subject_id(token), request.to_changes())
    return ok(UserDto.from_entity(user), "Profile updated successfully")
