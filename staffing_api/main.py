"""
Staffing Booking API - FastAPI Application

Main entry point for the API server.
Run with: uvicorn staffing_api.main:app --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from staffing_api.config.settings import settings
from staffing_api.config.database import init_db
from staffing_api.endpoints import api_router
from staffing_api.middleware.auth import AuthMiddleware
from staffing_api.middleware.error_handler import setup_exception_handlers
from staffing_api.middleware.logging import LoggingMiddleware, configure_logging

# Configure structured logging
configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info(
        "Starting Staffing Booking API",
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        environment=settings.ENVIRONMENT,
        match_on_skills=settings.MATCH_ON_SKILLS,
    )

    # Initialize database tables (in dev mode, migrations otherwise)
    if settings.DEBUG:
        logger.info("Initializing database tables (DEBUG mode)")
        try:
            init_db()
        except SQLAlchemyError as e:
            logger.critical("Failed to initialize database", error=str(e))
            raise

    yield

    # Shutdown
    logger.info("Shutting down Staffing Booking API")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Project staffing: candidate matching and slot booking",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Setup exception handlers
setup_exception_handlers(app)

# Middleware added last runs first on the way in

# Add authentication middleware (innermost)
app.add_middleware(AuthMiddleware)

# Add logging middleware (wraps auth so rejected requests are logged too)
app.add_middleware(LoggingMiddleware)

# Add CORS middleware (outermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


# Root health endpoint (for ALB)
@app.get("/health")
async def root_health():
    """Simple health check for load balancer."""
    return {"status": "ok", "version": settings.APP_VERSION}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/api/docs" if settings.DEBUG else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "staffing_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
