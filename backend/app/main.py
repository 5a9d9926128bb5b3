"""EZ Clear Backend API - FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from ezclear.marketplace.errors import MarketplaceError

from .config import get_settings
from .database import check_database, get_supabase_client
from .errors import marketplace_error_handler, unexpected_error_handler, validation_error_handler
from .logging_config import configure_logging
from .rate_limit import limiter
from .routes import applications_router, jobs_router, notifications_router

SERVICE_NAME = "ezclear-backend"
VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    logger = configure_logging("DEBUG" if settings.debug else settings.log_level)
    logger.info(f"Starting EZ Clear Backend API (debug={settings.debug})")
    yield
    logger.info("Shutting down EZ Clear Backend API")


app = FastAPI(
    title="EZ Clear Backend API",
    description="Job marketplace API for local home services",
    version=VERSION,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Error mapping
app.add_exception_handler(MarketplaceError, marketplace_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unexpected_error_handler)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(jobs_router)
app.include_router(applications_router)
app.include_router(notifications_router)


@app.get("/")
async def root():
    """Service info."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "status": "ok",
    }


@app.get("/health")
async def health():
    """Detailed health check with actual database verification."""
    db_status = "disconnected"
    try:
        check_database(get_supabase_client())
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)[:50]}"

    overall_status = "healthy" if db_status == "connected" else "degraded"

    return {
        "status": overall_status,
        "database": db_status,
    }
