"""API endpoints for the staffing booking API."""

from fastapi import APIRouter

from .health import router as health_router
from .projects import router as projects_router
from .assignments import router as assignments_router
from .candidates import router as candidates_router
from .admin import router as admin_router

# Create main API router
api_router = APIRouter()

# Include all routers
api_router.include_router(health_router, prefix="/health", tags=["Health"])
api_router.include_router(projects_router, prefix="/projects", tags=["Projects"])
api_router.include_router(assignments_router, prefix="/assignments", tags=["Assignments"])
api_router.include_router(candidates_router, prefix="/candidates", tags=["Candidates"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])

__all__ = ["api_router"]
