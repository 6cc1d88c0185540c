"""
Dashboard routes for APK Tracker
"""
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from typing import Optional

from ..dashboard_page import DASHBOARD_HTML
from ..dependencies import get_dashboard_service
from ..models import DashboardResponse
from ..services.aggregator import DashboardService
from ..services.gateway import GatewayError
from ..utils import handle_service_error

router = APIRouter(tags=["dashboard"])


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index():
    return DASHBOARD_HTML


@router.get("/api/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    strategy: Optional[str] = None,
    service: DashboardService = Depends(get_dashboard_service)
):
    """
    Apps with install/open counts plus totals.

    On a backend failure the last successful snapshot is returned with
    stale=true and the error message.
    """
    try:
        return await service.refresh(strategy)
    except GatewayError as e:
        raise handle_service_error(e)
