from typing import List

from fastapi import APIRouter, Depends

from quizhub.api.controller.admin.dto.output_dto import DashboardStatsDto, DashboardUserDto
from quizhub.api.middleware.authentication.jwt_bearer import get_current_admin
from quizhub.api.models.response_models import ApiResponse, ok
from quizhub.core.dependencies import get_dashboard_service
from quizhub.core.service.dashboard.dashboard_service import DashboardService

router = APIRouter(
    prefix="/admin/dashboard",
    tags=["Admin Dashboard"],
    dependencies=[Depends(get_current_admin)]
)


@router.get("/stats", response_model=ApiResponse[DashboardStatsDto])
async def get_stats(dashboard_service: DashboardService = Depends(get_dashboard_service)):
    """Total users, sign-ups in the last day and users active in the last 30 minutes."""
    stats = await dashboard_service.get_stats()
    return ok(DashboardStatsDto(**stats), "Dashboard stats fetched successfully")


@router.get("/users", response_model=ApiResponse[List[DashboardUserDto]])
async def get_users(dashboard_service: DashboardService = Depends(get_dashboard_service)):
    users = await dashboard_service.get_users()
    return ok([DashboardUserDto(**user) for user in users], "Users fetched successfully")
