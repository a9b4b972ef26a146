"""Installation API endpoints."""

from fastapi import APIRouter, Depends, Request

from indextts_installer.logger import get_logger
from indextts_installer.models.api import (
    CancelInstallationResponse,
    InstallPathRequest,
    MessageResponse,
    StartInstallationResponse,
    SuccessResponse,
)
from indextts_installer.models.installation import InstallConfig, InstallProgress
from indextts_installer.services.installation import InstallationOrchestrator
from indextts_installer.services.launcher import AppLauncher

logger = get_logger(__name__)
router = APIRouter(prefix="/api/installation", tags=["installation"])


# Dependency injection functions


def get_orchestrator(request: Request) -> InstallationOrchestrator:
    return request.app.state.orchestrator


def get_launcher(request: Request) -> AppLauncher:
    return request.app.state.launcher


# Endpoints


@router.post("/start", response_model=StartInstallationResponse)
async def start_installation(
    config: InstallConfig,
    orchestrator: InstallationOrchestrator = Depends(get_orchestrator),
) -> StartInstallationResponse:
    """
    Start an installation in the background.

    Returns immediately; poll /progress until a record with the returned
    run_id reaches a terminal step.
    """
    message = await orchestrator.start_installation(config)
    assert orchestrator.current_run_id is not None
    return StartInstallationResponse(message=message, run_id=orchestrator.current_run_id)


@router.get("/progress", response_model=InstallProgress)
async def get_installation_progress(
    orchestrator: InstallationOrchestrator = Depends(get_orchestrator),
) -> InstallProgress:
    """Current progress record."""
    return orchestrator.get_installation_progress()


@router.post("/cancel", response_model=CancelInstallationResponse)
async def cancel_installation(
    orchestrator: InstallationOrchestrator = Depends(get_orchestrator),
) -> CancelInstallationResponse:
    """Cancel the running installation, if any."""
    cancelled = await orchestrator.cancel_installation()
    return CancelInstallationResponse(cancelled=cancelled)


@router.post("/launch", response_model=MessageResponse)
async def launch_indextts(
    request: InstallPathRequest,
    launcher: AppLauncher = Depends(get_launcher),
) -> MessageResponse:
    """Launch the installed application."""
    return MessageResponse(message=launcher.launch(request.install_path))


@router.post("/open-directory", response_model=SuccessResponse)
async def open_install_directory(
    request: InstallPathRequest,
    launcher: AppLauncher = Depends(get_launcher),
) -> SuccessResponse:
    """Open the installation directory in the file manager."""
    launcher.open_directory(request.install_path)
    return SuccessResponse()
