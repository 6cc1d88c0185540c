"""
FastAPI dependencies handing the per-application services to routes
"""
from fastapi import HTTPException, Request

from .services.aggregator import DashboardService
from .services.gateway import DataGateway
from .utils import error_payload


def get_gateway(request: Request) -> DataGateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=503,
            detail=error_payload("BACKEND_UNAVAILABLE", "Backend client is not initialized")
        )
    return gateway


def get_dashboard_service(request: Request) -> DashboardService:
    service = getattr(request.app.state, "dashboard_service", None)
    if service is None:
        service = DashboardService(get_gateway(request))
        request.app.state.dashboard_service = service
    return service
