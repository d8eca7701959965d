"""Health check endpoint."""
from fastapi import APIRouter
from dailygift.config import get_settings
from dailygift.schemas.gift import HealthResponse, StatusResponse
from dailygift.version import APP_VERSION

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness endpoint for monitoring. Does not touch the database."""
    return {"status": "ok"}


@router.get("/status", response_model=StatusResponse)
async def service_status():
    """Get version and environment information."""
    settings = get_settings()
    return {
        "version": APP_VERSION,
        "environment": settings.environment,
        "bot_enabled": settings.bot_enabled,
    }
