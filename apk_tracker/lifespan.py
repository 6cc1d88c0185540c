"""
Lifespan module for APK Tracker
Builds the backend client and services on startup, closes the client on shutdown
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging

from .database import create_client, get_collections, setup_indexes
from .services.aggregator import DashboardService
from .services.gateway import DataGateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    startup_logger = logging.getLogger("uvicorn")
    owned_client = None

    # Services injected by create_app() (tests, scripts) are used as-is
    if getattr(app.state, "gateway", None) is None:
        startup_logger.info("Connecting to MongoDB...")
        owned_client = create_client()
        collections = get_collections(owned_client)
        app.state.mongo_client = owned_client
        app.state.gateway = DataGateway(collections, client=owned_client)
        app.state.dashboard_service = DashboardService(app.state.gateway)

        try:
            startup_logger.info("Setting up indexes...")
            await setup_indexes(collections)
            startup_logger.info("Index setup completed")
        except Exception as e:
            startup_logger.error(f"Warning: index setup failed: {e}")
    elif getattr(app.state, "dashboard_service", None) is None:
        app.state.dashboard_service = DashboardService(app.state.gateway)

    yield

    shutdown_logger = logging.getLogger("uvicorn")
    if owned_client is not None:
        shutdown_logger.info("Closing MongoDB client...")
        owned_client.close()
        app.state.gateway = None
        app.state.dashboard_service = None
        app.state.mongo_client = None
    shutdown_logger.info("Shutdown complete")
