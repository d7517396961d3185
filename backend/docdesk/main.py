"""
FastAPI Application Entry Point.

This module builds the FastAPI application and includes all routers. The
database handle and blob storage are created here and opened for the
lifetime of the process.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docdesk.config import settings
from docdesk.api.errors import register_exception_handlers
from docdesk.api.v1.router import api_router
from docdesk.core.metrics import router as metrics_router
from docdesk.core.rate_limiter import limiter
from docdesk.db.session import Database
from docdesk.middleware.metrics_middleware import MetricsMiddleware
from docdesk.services.storage_service import LocalStorageService

logger = logging.getLogger(__name__)


def create_app(
    database: Optional[Database] = None,
    storage: Optional[LocalStorageService] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        database: Database handle; defaults to ``DATABASE_URL``.
        storage: Blob storage; defaults to ``UPLOAD_DIR``.
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    database = database or Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.open()
        app.state.storage = storage or LocalStorageService(settings.UPLOAD_DIR)
        logger.info(f"{settings.APP_NAME} started")
        yield
        database.close()
        logger.info(f"{settings.APP_NAME} stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Employee document upload, review and approval",
        version="1.0.0",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.database = database

    # Add rate limiter to app state
    app.state.limiter = limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)
    app.include_router(metrics_router)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        """
        Health check endpoint.

        Returns:
            dict: Status of the application.
        """
        return {"success": True, "message": "healthy"}

    return app


app = create_app()
