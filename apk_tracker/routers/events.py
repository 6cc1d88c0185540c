"""
Install/open listing routes for APK Tracker
"""
from fastapi import APIRouter, Depends
from typing import List, Optional

from ..dependencies import get_gateway
from ..models import InstallResponse, OpenResponse
from ..services.gateway import DataGateway, GatewayError
from ..utils import handle_service_error

router = APIRouter(prefix="/api", tags=["events"])


@router.get("/installs", response_model=List[InstallResponse])
async def list_installs(app_key: Optional[str] = None, gateway: DataGateway = Depends(get_gateway)):
    """All installs, newest first (optionally for one app key)"""
    try:
        rows = await gateway.list_installs(app_key)
    except GatewayError as e:
        raise handle_service_error(e)
    return [gateway.to_install_response(row) for row in rows]


@router.get("/opens", response_model=List[OpenResponse])
async def list_opens(app_key: Optional[str] = None, gateway: DataGateway = Depends(get_gateway)):
    """All opens, newest first (optionally for one app key)"""
    try:
        rows = await gateway.list_opens(app_key)
    except GatewayError as e:
        raise handle_service_error(e)
    return [gateway.to_open_response(row) for row in rows]
