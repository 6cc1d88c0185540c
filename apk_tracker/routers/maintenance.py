"""
Maintenance routes for APK Tracker

Finishing an interrupted app delete: list and purge install/open rows whose
app key no longer exists.
"""
from fastapi import APIRouter, Depends
import logging

from ..dependencies import get_gateway
from ..models import OrphanReport, PurgeOrphansResponse
from ..services.gateway import DataGateway, GatewayError
from ..utils import handle_service_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


@router.get("/orphans", response_model=OrphanReport)
async def list_orphans(gateway: DataGateway = Depends(get_gateway)):
    try:
        report = await gateway.find_orphan_keys()
    except GatewayError as e:
        raise handle_service_error(e)
    return OrphanReport(**report)


@router.post("/purge-orphans", response_model=PurgeOrphansResponse)
async def purge_orphans(gateway: DataGateway = Depends(get_gateway)):
    try:
        result = await gateway.purge_orphans()
    except GatewayError as e:
        raise handle_service_error(e)
    return PurgeOrphansResponse(**result)
