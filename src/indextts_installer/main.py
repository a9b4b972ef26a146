import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from indextts_installer import __version__
from indextts_installer.config import get_config
from indextts_installer.exceptions import AppBaseError
from indextts_installer.logger import configure_logging, get_logger
from indextts_installer.models.api import ErrorResponse
from indextts_installer.models.config import AppConfig
from indextts_installer.routers import app_config_api as config_router
from indextts_installer.routers import installation_api as installation_router
from indextts_installer.routers import system_api as system_router
from indextts_installer.services.i18n import get_i18n_service
from indextts_installer.services.installation import InstallationOrchestrator, ProgressTracker
from indextts_installer.services.launcher import AppLauncher
from indextts_installer.services.platform import PlatformAdapter, get_platform_adapter
from indextts_installer.services.system import SystemProbe

# Configure basic logging early to capture uvicorn and third-party messages
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan events."""
    config: AppConfig = app.state.config
    config.paths.data_dir.mkdir(parents=True, exist_ok=True)
    yield
    orchestrator: InstallationOrchestrator = app.state.orchestrator
    if orchestrator.is_running:
        logger.warning("Shutting down with an installation in progress, cancelling it")
        await orchestrator.cancel_installation()


def create_app(
    config: AppConfig | None = None,
    adapter: PlatformAdapter | None = None,
    orchestrator: InstallationOrchestrator | None = None,
    probe: SystemProbe | None = None,
    launcher: AppLauncher | None = None,
) -> FastAPI:
    """Build the API with its own progress record and services.

    Every argument defaults to an instance built from the application config,
    so independent apps (e.g. under test) never share installation state.
    """
    config = config or get_config()
    configure_logging(config.advanced.log_level)
    adapter = adapter or get_platform_adapter()
    lang = config.ui.preferred_language
    i18n = get_i18n_service()

    if orchestrator is None:
        tracker = ProgressTracker(ready_message=i18n.translate("installation.ready", lang=lang))
        orchestrator = InstallationOrchestrator(tracker, config.installer, lang=lang, i18n=i18n)

    app = FastAPI(title="IndexTTS Installer", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.adapter = adapter
    app.state.orchestrator = orchestrator
    app.state.probe = probe or SystemProbe(adapter, command_timeout=config.probe.command_timeout)
    app.state.launcher = launcher or AppLauncher(config.installer, adapter, lang=lang, i18n=i18n)

    # The desktop shell loads the UI from its own origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppBaseError)
    async def app_error_handler(request: Request, exc: AppBaseError) -> JSONResponse:
        logger.warning("Request failed", path=request.url.path, error_key=exc.i18n_key, error=str(exc))
        body = ErrorResponse(detail=exc.localized(lang), error_key=exc.i18n_key, retriable=exc.retriable)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.get("/api/hello", operation_id="hello_api_hello_get")
    async def hello_get() -> dict[str, str]:
        """Return a simple hello message with version info."""
        return {"message": "Hello from IndexTTS Installer!", "version": __version__}

    # Register routers
    app.include_router(config_router.router)
    app.include_router(system_router.router)
    app.include_router(installation_router.router)

    return app


def run_server(port: int | None = None, host: str | None = None) -> None:
    """Run the installer backend.

    Args:
        port: Optional port number to override config.
        host: Optional host to override config.
    """
    config = get_config()

    if port is not None and port != config.server.port:
        logger.info("Port override detected", old_port=config.server.port, new_port=port)
        config.server.port = port
    if host is not None:
        config.server.host = host

    uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)


def main() -> None:
    """Main entry point with CLI argument parsing."""
    import argparse

    parser = argparse.ArgumentParser(
        description="IndexTTS Installer - installer/launcher backend for IndexTTS",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  indextts-installer                    # Start with default/configured port
  indextts-installer --port 9000        # Start on port 9000
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number to run the server on",
    )

    parser.add_argument(
        "--host",
        metavar="HOST",
        help="Interface to bind (default from config, 127.0.0.1)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"IndexTTS Installer {__version__}",
    )

    args = parser.parse_args()

    run_server(port=args.port, host=args.host)


if __name__ == "__main__":
    main()
