# backend/labhub/main.py
"""
FastAPI application for the LabHub lab booking engine.

``create_app`` builds an app with an optional identity provider; the module
level ``app`` is what ``uvicorn labhub.main:app`` serves. The hosting platform
installs its identity provider via ``app.state.identity_provider``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, FastAPI
from pydantic import BaseModel

from .api.dependencies.auth import IdentityProvider
from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION
from .errors import register_error_handlers
from .routes import prometheus
from .routes.v1 import (
    admin_lab_bookings,
    admin_lab_maintenance,
    admin_lab_spaces,
    lab_bookings,
    lab_spaces,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    environment: str


def create_app(identity_provider: Optional[IdentityProvider] = None) -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.identity_provider = identity_provider
    register_error_handlers(app)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(lab_bookings.router, prefix="/lab-bookings")
    api_v1.include_router(lab_spaces.router, prefix="/lab-spaces")
    api_v1.include_router(admin_lab_bookings.router, prefix="/admin/lab-bookings")
    api_v1.include_router(admin_lab_maintenance.router, prefix="/admin/lab-maintenance")
    api_v1.include_router(admin_lab_spaces.router, prefix="/admin/lab-spaces")
    app.include_router(api_v1)

    if settings.prometheus_enabled:
        app.include_router(prometheus.router)

    @app.get("/health", response_model=HealthResponse, include_in_schema=False)
    def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service=settings.app_name,
            version=API_VERSION,
            environment=settings.environment,
        )

    logger.info(
        "LabHub API ready",
        extra={"environment": settings.environment, "lock_backend": settings.lab_lock_backend},
    )
    return app


app = create_app()
