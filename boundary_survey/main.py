"""
FastAPI application entry point.

Wires the coordinate, location and survey routers together with logging,
CORS, rate limiting and the error handling middleware.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from boundary_survey.config import settings
from boundary_survey.api.dependencies import SurveySessionDep
from boundary_survey.api.rate_limit import limiter
from boundary_survey.api.v1.routers import coordinates, location, survey
from boundary_survey.infrastructure.coordinate_source_client import get_source_client
from boundary_survey.middleware.error_handler import ErrorHandlerMiddleware

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the survey configuration on startup and release the HTTP client on shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version} (log level {settings.log_level})")
    logger.info(
        f"Arrival radius {settings.default_proximity_threshold_m}m "
        f"(allowed {settings.min_proximity_threshold_m}-{settings.max_proximity_threshold_m}m), "
        f"nearby radius {settings.nearby_point_threshold_m}m, area figure '{settings.area_ellipsoid}'"
    )
    logger.info(f"Import rate limit: {settings.rate_limit_requests}/minute")

    yield

    logger.info("Closing coordinate source client")
    await get_source_client().close()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Field survey API for property boundaries.

    A map client loads or records boundary points here, reads back the
    enclosed area, and streams device fixes while the surveyor walks the
    boundary point by point.

    ## Coordinates

    - Import a JSON array from the request body, an uploaded `.json` file or a
      remote URL. Records use `lat`/`latitude` and `lng`/`longitude`/`long`;
      one invalid record rejects the whole import and the error names its index.
    - Or record points from live GPS fixes in manual plotting mode, then
      export them as JSON.
    - Area is reported in m², ft², acres, hectares and km².

    ## Field survey

    1. Load coordinates and start tracking (`/api/v1/location/tracking/start`)
    2. Start the survey; point 1 is the first target
    3. Post each fix to `/api/v1/location/fix`; `proximity.just_arrived` is
       true once per arrival inside the arrival radius
    4. Mark the target found to advance to the next unfound point, wrapping
       around to any points that were skipped
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ErrorHandlerMiddleware)

for router in (coordinates.router, location.router, survey.router):
    app.include_router(router, prefix="/api/v1")


@app.get("/", tags=["health"])
async def root():
    """Service identity."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check(session: SurveySessionDep):
    """
    Health check with a summary of the current session.

    Returns:
        Service status, coordinate count, tracking and survey flags
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "coordinates": len(session.active_coordinates),
        "tracking": session.tracking,
        "survey_active": session.survey.is_active,
    }
