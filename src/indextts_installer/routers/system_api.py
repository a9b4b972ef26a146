"""System information API endpoints."""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool

from indextts_installer.exceptions import OperationalError
from indextts_installer.logger import get_logger
from indextts_installer.models.api import DefaultInstallPathResponse, GreetingResponse
from indextts_installer.models.config import AppConfig
from indextts_installer.models.system import SystemInfo
from indextts_installer.services.i18n import get_i18n_service
from indextts_installer.services.platform import PlatformAdapter
from indextts_installer.services.system import SystemProbe

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["system"])


# Dependency injection functions


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_probe(request: Request) -> SystemProbe:
    return request.app.state.probe


def get_adapter(request: Request) -> PlatformAdapter:
    return request.app.state.adapter


# Endpoints


@router.get("/greet", response_model=GreetingResponse)
async def greet(
    name: str = Query(..., description="Name to greet"),
    config: AppConfig = Depends(get_app_config),
) -> GreetingResponse:
    """Connectivity smoke test for the desktop shell."""
    message = get_i18n_service().translate("api.greeting", lang=config.ui.preferred_language, name=name)
    return GreetingResponse(message=message)


@router.get("/system/default-install-path", response_model=DefaultInstallPathResponse)
async def get_default_install_path(
    config: AppConfig = Depends(get_app_config),
    adapter: PlatformAdapter = Depends(get_adapter),
) -> DefaultInstallPathResponse:
    """
    Suggest an installation directory.

    Returns:
        ${HOME}/Documents/<AppName>, or the platform fallback when HOME is unset
    """
    return DefaultInstallPathResponse(path=adapter.default_install_path(config.installer.app_name))


@router.get("/system/info", response_model=SystemInfo)
async def get_system_info(probe: SystemProbe = Depends(get_probe)) -> SystemInfo:
    """
    Probe host capabilities.

    The probe shells out to several tools, so it runs in a worker thread.
    """
    try:
        return await run_in_threadpool(probe.get_system_info)
    except Exception as e:
        logger.error(f"System probe failed: {e}")
        raise OperationalError("system.probe_failed", error=str(e)) from e
