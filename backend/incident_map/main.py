"""FastAPI application for the incident map backend."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from incident_map.config import get_settings
from incident_map.dataset import DatasetError, get_store
from incident_map.rate_limit import limiter
from incident_map.routers import health_router, incidents_router, map_router
from incident_map.routers.map_config import MapCredentialMissingError
from incident_map.tasks.scheduler import setup_scheduler, shutdown_scheduler
from incident_map.websocket import websocket_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info("Starting incident map backend...")

    # The whole dataset is loaded once, up front
    try:
        dataset = get_store().load()
        logger.info(f"Dataset ready: {len(dataset.incidents)} incidents")
    except DatasetError as e:
        logger.error(f"Dataset not ready: {e}")
        raise

    if not settings.google_maps_api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not set; the map view will show an error")

    setup_scheduler()

    yield

    # Shutdown
    shutdown_scheduler()
    logger.info("Incident map backend shut down")


# Create FastAPI app
app = FastAPI(
    title="Incident Map API",
    description="Palo Alto police report log incidents for an interactive map",
    version="0.1.0",
    lifespan=lifespan,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MapCredentialMissingError)
async def map_credential_missing_handler(request: Request, exc: MapCredentialMissingError):
    """The only user-visible failure: no map without an API key."""
    logger.error(exc.message)
    return JSONResponse(
        status_code=503,
        content={"detail": exc.message},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Include routers
app.include_router(health_router)
app.include_router(incidents_router, prefix=settings.api_v1_prefix)
app.include_router(map_router, prefix=settings.api_v1_prefix)
app.include_router(websocket_router)  # WebSocket at /ws/map


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Incident Map API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
        "map_configured": bool(get_settings().google_maps_api_key),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "incident_map.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
