"""Public config endpoint for frontend (auth mode, feature flags)."""
from fastapi import APIRouter

from sheetchat.config import settings

router = APIRouter()


@router.get("/config")
def get_config():
    """Return public config: project name, auth mode, AI availability. No auth required."""
    return {
        "project_name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "auth_mode": settings.AUTH_MODE,
        "ai_configured": settings.ai_configured,
    }
