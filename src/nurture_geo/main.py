"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and OpenAPI metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from nurture_geo.core.config import get_settings
from nurture_geo.core.logging import setup_logging
from nurture_geo.lib.geocoder import GeocodingProviderError
from nurture_geo.services.geocoding_service import get_default_chain, reset_default_chain


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: configure logging and build the chain on startup."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)
    logger.info(f"Starting nurture-geo API ({settings.environment})")
    get_default_chain()

    yield

    reset_default_chain()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Nurture Geo",
        description="NZ address normalization, geocoding, and proximity matching for contact nurturing",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Register exception handlers
    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    @app.exception_handler(GeocodingProviderError)
    async def provider_error_handler(request: Request, exc: GeocodingProviderError) -> JSONResponse:
        logger.warning(f"Unhandled geocoding provider error from {exc.provider_name}: {exc.message}")
        return JSONResponse(
            status_code=502,
            content={"detail": "Geocoding provider is temporarily unavailable. Please retry later."},
        )

    from nurture_geo.api.router import create_router

    app.include_router(create_router(settings))

    return app
