"""
LifeLine FastAPI Application Entry Point

Main application initialization with:
- Lifespan management (sampling loop startup/shutdown)
- CORS configuration
- Error handling middleware and domain error mapping
- Router registration
- Metrics endpoint

This is the production entry point for the LifeLine core.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lifeline import __version__
from lifeline.config import get_settings
from lifeline.config.logging_config import configure_logging, get_logger
from lifeline.api.dependencies import set_monitoring_service
from lifeline.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
)
from lifeline.api.v1.router import api_router
from lifeline.infrastructure.metrics import metrics_router, update_system_info
from lifeline.services.monitoring import MonitoringService

# Initialize settings and logging
settings = get_settings()
configure_logging(settings)
logger = get_logger(__name__)


def create_application(service: Optional[MonitoringService] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        service: Monitoring service to run (built from settings when None)

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan manager.

        Starts the sampling loop on startup and stops it on shutdown.
        """
        logger.info(
            "Starting LifeLine application",
            env=settings.env,
            version=__version__,
        )
        monitoring = service or MonitoringService(settings)
        set_monitoring_service(monitoring)
        update_system_info(settings.env, __version__)

        try:
            await monitoring.start()
            yield
        finally:
            logger.info("Shutting down LifeLine application")
            await monitoring.stop()
            set_monitoring_service(None)
            logger.info("LifeLine application shutdown complete")

    app = FastAPI(
        title="LifeLine API",
        description="Vital-sign extraction and emergency escalation engine",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handling middleware
    app.add_middleware(ErrorHandlerMiddleware)
    register_exception_handlers(app)

    # Register API routers
    app.include_router(
        api_router,
        prefix=f"/api/{settings.api_version}",
    )
    app.include_router(metrics_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint - basic info."""
        return {
            "name": "LifeLine API",
            "version": __version__,
            "status": "operational",
        }

    return app


# Create application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lifeline.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )
