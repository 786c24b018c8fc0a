"""Health and status endpoints."""

from fastapi import APIRouter

from app.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.SERVICE_NAME}


@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "TraceCast Vectorize API",
        "docs": "/docs",
        "health": "/health",
        "vectorize": "/api/vectorize"
    }
