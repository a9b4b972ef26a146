"""Configuration API endpoints."""

from fastapi import APIRouter, Request

from indextts_installer.logger import get_logger
from indextts_installer.models.config import AppConfig

logger = get_logger(__name__)

router = APIRouter(prefix="/api/app-config", tags=["app-config"])


@router.get("", response_model=AppConfig)
async def get_current_config(request: Request) -> AppConfig:
    """Get current application configuration.

    Returns:
        Current configuration
    """
    config: AppConfig = request.app.state.config
    logger.debug("Returning config", repo_url=config.installer.repo_url)
    return config
