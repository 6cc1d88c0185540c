"""
Pydantic models for APK Tracker API
"""
from pydantic import BaseModel
from typing import List, Optional


class AppCreate(BaseModel):
    app_name: str
    package_name: str


class AppUpdate(BaseModel):
    app_name: str
    package_name: str


class AppResponse(BaseModel):
    id: int
    app_key: str
    app_name: str
    package_name: str
    created_at: Optional[str] = None


class AppWithStats(AppResponse):
    """AppResponse plus install/open counts for the dashboard table"""
    installs: int = 0
    opens: int = 0


class AppCountsResponse(BaseModel):
    id: int
    app_key: str
    installs: int = 0
    opens: int = 0


class InstallResponse(BaseModel):
    id: Optional[int] = None
    app_key: Optional[str] = None
    device_id: Optional[str] = None
    package_name: Optional[str] = None
    installed_at: Optional[str] = None


class OpenResponse(BaseModel):
    id: Optional[int] = None
    app_key: Optional[str] = None
    device_id: Optional[str] = None
    opened_at: Optional[str] = None


class DashboardResponse(BaseModel):
    total_apps: int = 0
    total_installs: int = 0
    total_opens: int = 0
    apps: List[AppWithStats] = []
    strategy: str = "count"
    stale: bool = False
    error: Optional[str] = None


class DeleteAppResponse(BaseModel):
    success: bool = True
    message: str
    app_key: str
    installs_deleted: int = 0
    opens_deleted: int = 0


class OrphanReport(BaseModel):
    orphan_keys: List[Optional[str]]
    installs: int = 0
    opens: int = 0


class PurgeOrphansResponse(BaseModel):
    purged_keys: List[Optional[str]]
    installs_deleted: int = 0
    opens_deleted: int = 0
