"""FastAPI application entry point.

This module initializes the FastAPI application with CORS,
middleware, the location pipeline services and route registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mediamap import __version__
from mediamap.api.endpoints import auth, coordinates, export, geocode, health, locations, media
from mediamap.core.config import settings
from mediamap.core.logging import setup_logging
from mediamap.geo.extractor import CoordinateExtractor
from mediamap.geo.geocoder import AddressResolver, InMemoryAddressCache, NominatimGeocoder
from mediamap.middleware.error_handler import ErrorHandlerMiddleware, setup_exception_handlers
from mediamap.services.database import engine, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Sets up logging, the database schema, the upload directory and the
    shared geocoding HTTP client; closes the client and the engine on
    shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    # Startup
    setup_logging(settings)
    logger.info("Starting mediamap API...")
    logger.info(f"Environment: {settings.APP_ENV}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    if settings.CREATE_TABLES_ON_STARTUP:
        await init_db()

    http_client = httpx.AsyncClient(timeout=settings.GEOCODER_TIMEOUT)
    app.state.resolver = AddressResolver(
        NominatimGeocoder(
            http_client,
            url=settings.GEOCODER_URL,
            user_agent=settings.GEOCODER_USER_AGENT,
            timeout=settings.GEOCODER_TIMEOUT,
        ),
        InMemoryAddressCache(),
        precision=settings.ADDRESS_CACHE_PRECISION,
    )
    app.state.extractor = CoordinateExtractor.from_settings(settings)
    logger.info(f"Hemisphere policy: {settings.HEMISPHERE_POLICY}, OCR enabled: {settings.OCR_ENABLED}")

    yield

    # Shutdown
    logger.info("Shutting down mediamap API...")
    await http_client.aclose()
    await engine.dispose()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Media Map API",
        description=(
            "Geotagged photo and video uploads pinned to a map. Extracts "
            "coordinates from EXIF, OCR or user input, groups uploads into "
            "location markers and resolves addresses."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handling middleware
    app.add_middleware(ErrorHandlerMiddleware)

    # Setup exception handlers
    setup_exception_handlers(app)

    # Register routers
    app.include_router(health.router)
    for module in (auth, media, locations, geocode, coordinates, export):
        app.include_router(module.router, prefix=settings.API_PREFIX)

    return app


# Create the application instance
app = create_application()
