"""
APK Tracker - main application module

Registers apps, shows install/open counts and deletes apps with their data.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from . import __version__
from .config import CORS_ORIGINS, HOST, LOG_LEVEL, PORT
from .lifespan import lifespan
from .routers import apps, dashboard, events, maintenance
from .utils import error_payload

logger = logging.getLogger(__name__)


def create_app(gateway=None, dashboard_service=None) -> FastAPI:
    """
    Build the FastAPI application.

    When a gateway is passed in, the lifespan uses it instead of connecting
    to MongoDB.
    """
    app = FastAPI(title="APK Tracker", version=__version__, lifespan=lifespan)
    app.state.gateway = gateway
    app.state.dashboard_service = dashboard_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(dashboard.router)
    app.include_router(apps.router)
    app.include_router(events.router)
    app.include_router(maintenance.router)

    @app.get("/health")
    async def health():
        backend = getattr(app.state, "gateway", None)
        if backend is None:
            return JSONResponse(
                status_code=503,
                content=error_payload("BACKEND_UNAVAILABLE", "Backend client is not initialized")
            )
        try:
            await backend.ping()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content=error_payload("BACKEND_UNAVAILABLE", f"Database unhealthy: {e}")
            )
        return {"status": "healthy", "database": "connected", "version": __version__}

    return app


app = create_app()


def run():
    """Entry point for the apk-tracker-server script."""
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
