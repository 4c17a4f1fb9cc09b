"""
Vending Tracker API - Main Application.

FastAPI application exposing the item store, sale recording and report
downloads. The storage handle is opened when the app starts and closed when
it stops.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.models import HealthResponse
from config import Settings, configure_logging, cors_origins_from_env, load_settings
from repositories.client import StorageHandle

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[StorageHandle] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use; loaded from the environment at startup if omitted
        storage: Pre-built storage handle; built from settings at startup if omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = app.state.settings or load_settings()
        app.state.settings = resolved
        configure_logging(resolved.log_level)

        handle = app.state.storage or StorageHandle(resolved.supabase_url, resolved.supabase_key)
        handle.connect()
        app.state.storage = handle
        logger.info("Vending tracker API started", extra={"version": __version__})
        try:
            yield
        finally:
            handle.close()
            logger.info("Vending tracker API stopped")

    app = FastAPI(
        title="Vending Tracker API",
        description="Inventory, point-of-sale recording and sales reports for a vending operation",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage

    origins = settings.cors_origins if settings is not None else cors_origins_from_env()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.get("/", tags=["Root"])
    def root():
        """API information endpoint."""
        return {
            "message": "Vending Tracker API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health"
        }

    @app.get("/health", tags=["Health"], response_model=HealthResponse)
    def health_check(request: Request):
        """
        Health check endpoint.

        Returns the API status, version and whether storage is connected.
        """
        storage = request.app.state.storage
        return HealthResponse(
            status="healthy",
            version=__version__,
            service="vending-tracker-api",
            storage_connected=bool(storage is not None and storage.is_connected),
        )

    from api.routers import items, reports, sales

    app.include_router(items.router, prefix="/api", tags=["Items"])
    app.include_router(sales.router, prefix="/api", tags=["Sales"])
    app.include_router(reports.router, prefix="/api", tags=["Reports"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=8000)
