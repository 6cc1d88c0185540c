"""
App registration routes for APK Tracker

Thin HTTP handlers that delegate to DataGateway / DashboardService.
"""
from fastapi import APIRouter, Depends
from typing import List
import logging

from ..dependencies import get_dashboard_service, get_gateway
from ..models import AppCreate, AppUpdate, AppResponse, AppCountsResponse, DeleteAppResponse
from ..services.aggregator import DashboardService
from ..services.gateway import DataGateway, GatewayError
from ..utils import handle_service_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/apps", tags=["apps"])


@router.get("", response_model=List[AppResponse])
async def list_apps(gateway: DataGateway = Depends(get_gateway)):
    """List all registered apps, newest first."""
    try:
        apps = await gateway.list_apps()
    except GatewayError as e:
        raise handle_service_error(e)
    return [gateway.to_app_response(app) for app in apps]


@router.post("", response_model=AppResponse)
async def register_app(app_data: AppCreate, gateway: DataGateway = Depends(get_gateway)):
    """Register an app and generate its tracking key."""
    try:
        app = await gateway.insert_app(app_data.app_name, app_data.package_name)
    except GatewayError as e:
        raise handle_service_error(e)
    return gateway.to_app_response(app)


@router.get("/{app_id}", response_model=AppResponse)
async def get_app(app_id: int, gateway: DataGateway = Depends(get_gateway)):
    try:
        app = await gateway.get_app(app_id)
    except GatewayError as e:
        raise handle_service_error(e)
    return gateway.to_app_response(app)


@router.put("/{app_id}", response_model=AppResponse)
async def update_app(app_id: int, app_data: AppUpdate, gateway: DataGateway = Depends(get_gateway)):
    """Change an app's name and package. The key stays the same."""
    try:
        app = await gateway.update_app(app_id, app_data.app_name, app_data.package_name)
    except GatewayError as e:
        raise handle_service_error(e)
    return gateway.to_app_response(app)


@router.delete("/{app_id}", response_model=DeleteAppResponse)
async def delete_app(app_id: int, gateway: DataGateway = Depends(get_gateway)):
    """Delete an app together with its installs and opens."""
    try:
        result = await gateway.delete_app(app_id)
    except GatewayError as e:
        raise handle_service_error(e)

    return DeleteAppResponse(
        success=True,
        message="App deleted",
        app_key=result["app_key"],
        installs_deleted=result["installs_deleted"],
        opens_deleted=result["opens_deleted"]
    )


@router.get("/{app_id}/counts", response_model=AppCountsResponse)
async def get_app_counts(app_id: int, service: DashboardService = Depends(get_dashboard_service)):
    """Install and open counts for one app."""
    try:
        return await service.counts_for_app(app_id)
    except GatewayError as e:
        raise handle_service_error(e)
