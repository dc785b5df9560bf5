"""
Admin authentication controller: password login, TOTP second factor,
refresh rotation and logout.
"""

from fastapi import APIRouter, Depends, status

from quizhub.api.controller.admin.dto.input_dto import (
    AdminLoginRequestDto, AdminRefreshRequestDto, AdminTfaLoginRequestDto,
    CreateAdminRequestDto, DisableTfaRequestDto, TfaCodeRequestDto,
)
from quizhub.api.controller.admin.dto.output_dto import (
    AdminLoginResponseDto, AdminProfileDto, EnableTfaResponseDto,
)
from quizhub.api.controller.auth.dto.output_dto import TokenPairDto
from quizhub.api.middleware.authentication.jwt_bearer import get_current_admin, subject_id
from quizhub.api.models.response_models import ApiResponse, ok
from quizhub.core.dependencies import get_admin_auth_service
from quizhub.core.service.auth.admin_auth_service import AdminAuthService, LoginResult
from quizhub.core.service.auth.models.token import TokenPayload

router = APIRouter(prefix="/admin/auth", tags=["Admin Authentication"])


def _login_response(result: LoginResult) -> AdminLoginResponseDto:
    if result.requires_tfa:
        return AdminLoginResponseDto(requiresTfa=True, tempUserId=str(result.admin.id))
    return AdminLoginResponseDto(
        requiresTfa=False,
        tokens=TokenPairDto.from_tokens(result.tokens),
        admin=AdminProfileDto.from_entity(result.admin)
    )


@router.post("/create", response_model=ApiResponse[AdminProfileDto], status_code=status.HTTP_201_CREATED)
async def create_admin(
    request: CreateAdminRequestDto,
    auth_service: AdminAuthService = Depends(get_admin_auth_service)
):
    admin = await auth_service.create_admin(request.email, request.username, request.password)
    return ok(AdminProfileDto.from_entity(admin), "Admin created successfully")


@router.post("/login", response_model=ApiResponse[AdminLoginResponseDto])
async def login(
    request: AdminLoginRequestDto,
    auth_service: AdminAuthService = Depends(get_admin_auth_service)
):
    """
    Password login.

    When two-factor authentication is active no tokens are issued; the response
    carries `requiresTfa` and the client continues with /admin/auth/login-with-tfa.
    """
    result = await auth_service.login(request.email, request.password)
    message = "Two-factor authentication required" if result.requires_tfa else "Login successful"
    return ok(_login_response(result), message)


@router.post("/login-with-tfa", response_model=ApiResponse[AdminLoginResponseDto])
async def login_with_tfa(
    request: AdminTfaLoginRequestDto,
    auth_service: AdminAuthService = Depends(get_admin_auth_service)
):
    result = await auth_service.login_with_tfa(request.email, request.password, request.code)
    return ok(_login_response(result), "Login successful")


@router.post("/enable-tfa", response_model=ApiResponse[EnableTfaResponseDto])
async def enable_tfa(
    token: TokenPayload = Depends(get_current_admin),
    auth_service: AdminAuthService = Depends(get_admin_auth_service)
):
    """Start enrolment; scan the QR code, then confirm with /admin/auth/verify-tfa."""
    enrollment = await auth_service.enable_tfa(subject_id(token))
    return ok(
        EnableTfaResponseDto(
            secret=enrollment.secret,
            otpauthUrl=enrollment.otpauth_url,
            qrCode=enrollment.qr_code
        ),
        "Scan the QR code with your authenticator app"
    )


@router.post("/verify-tfa", response_model=ApiResponse[AdminProfileDto])
async def verify_tfa(
    request: TfaCodeRequestDto,
    token: TokenPayload = Depends(get_current_admin),
    auth_service: AdminAuthService = Depends(get_admin_auth_service)
):
    admin = await auth_service.verify_tfa(subject_id(token), request.code)
    return ok(AdminProfileDto.from_entity(admin), "Two-factor authentication enabled")


@router.post("/disable-tfa", response_model=ApiResponse[AdminProfileDto])
async def disable_tfa(
    request: DisableTfaRequestDto,
    token: TokenPayload = Depends(get_current_admin),
    auth_service: AdminAuthService = Depends(get_admin_auth_service)
):
    admin = await auth_service.disable_tfa(subject_id(token), request.code)
    return ok(AdminProfileDto.from_entity(admin), "Two-factor authentication disabled")


@router.post("/refresh", response_model=ApiResponse[TokenPairDto])
async def refresh(
    request: AdminRefreshRequestDto,
    auth_service: AdminAuthService = Depends(get_admin_auth_service)
):
    tokens = await auth_service.refresh(request.refreshToken)
    return ok(TokenPairDto.from_tokens(tokens), "Token refreshed successfully")


@router.post("/logout", response_model=ApiResponse[None])
async def logout(
    token: TokenPayload = Depends(get_current_admin),
    auth_service: AdminAuthService = Depends(get_admin_auth_service)
):
    await auth_service.logout(subject_id(token))
    return ok(message="Logged out successfully")


@router.get("/profile", response_model=ApiResponse[AdminProfileDto])
async def profile(
    token: TokenPayload = Depends(get_current_admin),
    auth_service: AdminAuthService = Depends(get_admin_auth_service)
):
    admin = await auth_service.get_admin(subject_id(token))
    return ok(AdminProfileDto.from_entity(admin), "Profile fetched successfully")
