"""Installation orchestrator service.

Runs the fixed install pipeline in a background asyncio task:

    preparing (5) -> cloning (20) -> cloned (40) -> dependencies (60)
    -> deps_installed (80) -> models (90) -> completed (100)

The first failing step publishes an ``error`` record (progress 0) and the run
stops. Nothing is rolled back.
"""

import asyncio
import re
from pathlib import Path

from indextts_installer.exceptions import OperationalError, ResourceConflictError, ValidationError
from indextts_installer.logger import get_logger
from indextts_installer.models.config import InstallerConfig
from indextts_installer.models.installation import ErrorKind, InstallConfig, InstallProgress, InstallStep
from indextts_installer.services.i18n import I18nService, get_i18n_service
from indextts_installer.utils.subprocess_executor import SubprocessExecutor, decode_output

from .progress import ProgressTracker

logger = get_logger(__name__)

TRANSIENT_ERROR_PATTERNS = re.compile(
    "|".join(
        [
            r"Could not resolve host",
            r"Temporary failure in name resolution",
            r"Connection timed out",
            r"Connection reset",
            r"Connection refused",
            r"Failed to connect to",
            r"early EOF",
            r"RPC failed",
            r"ReadTimeoutError",
            r"ConnectTimeoutError",
            r"Max retries exceeded",
            r"NewConnectionError",
        ]
    ),
    re.IGNORECASE,
)


def is_transient_error(stderr: str) -> bool:
    """Whether captured stderr looks like a network hiccup worth retrying."""
    return bool(TRANSIENT_ERROR_PATTERNS.search(stderr))


class StepFailure(Exception):
    """A pipeline step failed; carries what goes into the error record."""

    def __init__(self, i18n_key: str, error_kind: ErrorKind, params: dict[str, object]) -> None:
        super().__init__(i18n_key)
        self.i18n_key = i18n_key
        self.error_kind = error_kind
        self.params = params


class InstallationOrchestrator:
    """Starts installation runs and publishes their progress."""

    def __init__(
        self,
        tracker: ProgressTracker,
        settings: InstallerConfig | None = None,
        lang: str = "en",
        i18n: I18nService | None = None,
    ) -> None:
        """
        Args:
            tracker: Shared progress record, also read by the API layer
            settings: Repository, commands and pacing of the pipeline
            lang: Language of the messages written to the progress record
            i18n: Translation service (defaults to the global one)
        """
        self.tracker = tracker
        self.settings = settings or InstallerConfig()
        self.lang = lang
        self.i18n = i18n or get_i18n_service()
        self._task: asyncio.Task[bool] | None = None
        self._run_id: str | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _text(self, key: str, **params: object) -> str:
        return self.i18n.translate(key, lang=self.lang, app_name=self.settings.app_name, **params)

    async def start_installation(self, config: InstallConfig) -> str:
        """
        Prepare the target directory and start the pipeline in the background.

        Returns as soon as the run is scheduled; progress is only observable
        through get_installation_progress().

        Raises:
            ResourceConflictError: A run is in flight, or the target directory is not empty
            ValidationError: The target exists but is not a directory
            OperationalError: The target directory cannot be created
        """
        if self.is_running:
            raise ResourceConflictError("installation.already_running")

        install_path = Path(config.install_path).expanduser()

        if install_path.exists():
            if not install_path.is_dir():
                raise ValidationError("installation.path_not_directory", path=str(install_path))
            # Re-runs are refused rather than resumed or wiped
            if any(install_path.iterdir()):
                raise ResourceConflictError("installation.directory_not_empty", path=str(install_path))
        else:
            try:
                install_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise OperationalError("installation.create_dir_failed", error=str(e)) from e
            logger.info(f"Created install directory: {install_path}")

        run_id = self.tracker.begin_run()
        self._run_id = run_id
        logger.info(
            "Starting installation",
            run_id=run_id,
            install_path=str(install_path),
            model_type=config.model_type,
            use_gpu=config.use_gpu,
        )
        self._task = asyncio.create_task(self._run(run_id, install_path), name=f"install-{run_id}")
        return self._text("installation.started")

    def get_installation_progress(self) -> InstallProgress:
        """Current progress record; never blocks on the running pipeline."""
        return self.tracker.snapshot()

    async def cancel_installation(self) -> bool:
        """
        Cancel the running pipeline.

        The record ends in the error state with error_kind "cancelled". Files
        already written stay where they are.

        Returns:
            False if no run was active
        """
        task = self._task
        if task is None or task.done():
            return False

        run_id = self._run_id
        logger.info("Cancelling installation", run_id=run_id)
        task.cancel()
        await asyncio.wait({task})

        # A task cancelled before its first step never runs its own cancellation handler
        record = self.tracker.snapshot()
        if record.run_id != run_id or not record.is_terminal:
            self._publish_error(run_id, self._text("installation.errors.cancelled"), "cancelled")
        return True

    @property
    def current_run_id(self) -> str | None:
        """Identifier of the latest started run, also carried by its progress records."""
        return self._run_id

    async def wait(self) -> bool | None:
        """Wait for the current run to finish; returns its outcome (None if there is no run)."""
        task = self._task
        if task is None:
            return None
        await asyncio.wait({task})
        if task.cancelled():
            return False
        return task.result()

    async def _run(self, run_id: str, install_path: Path) -> bool:
        """Background entry point; the outcome is only recorded, never raised."""
        try:
            await self._run_pipeline(run_id, install_path)
        except StepFailure as failure:
            message = self._text(failure.i18n_key, **failure.params)
            logger.error("Installation step failed", run_id=run_id, error_kind=failure.error_kind, message=message)
            self._publish_error(run_id, message, failure.error_kind)
            return False
        except asyncio.CancelledError:
            self._publish_error(run_id, self._text("installation.errors.cancelled"), "cancelled")
            raise
        except Exception as e:
            logger.exception("Installation failed unexpectedly", run_id=run_id)
            self._publish_error(run_id, self._text("installation.errors.unexpected", error=str(e)), "command_failed")
            return False

        logger.info("Installation completed", run_id=run_id)
        return True

    async def _run_pipeline(self, run_id: str, install_path: Path) -> None:
        settings = self.settings

        # Step 1: Prepare installation
        await self._advance(run_id, "preparing", 5)

        # Step 2: Clone repository
        self._publish(run_id, "cloning", 20)
        await self._run_command_step(
            "git",
            "clone",
            settings.repo_url,
            str(install_path),
            step_name="clone",
            timeout=settings.clone_timeout,
        )
        await self._advance(run_id, "cloned", 40)

        # Step 3: Install Python dependencies
        self._publish(run_id, "dependencies", 60)
        await self._run_command_step(
            *settings.pip_command,
            "install",
            "-r",
            settings.requirements_file,
            step_name="dependencies",
            timeout=settings.dependencies_timeout,
            cwd=install_path,
        )
        await self._advance(run_id, "deps_installed", 80)

        # Step 4: Setup models directory
        self._publish(run_id, "models", 90)
        models_dir = install_path / settings.checkpoints_dir
        try:
            models_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StepFailure("installation.errors.models_failed", "filesystem", {"error": str(e)}) from e
        await self._pause()

        # Step 5: Complete
        self._publish(run_id, "completed", 100, is_complete=True)

    async def _run_command_step(
        self,
        *args: str,
        step_name: str,
        timeout: float | None,
        cwd: Path | None = None,
    ) -> None:
        """Run one external command, retrying only on transient network errors."""
        attempt = 0
        while True:
            try:
                result = await SubprocessExecutor.run(*args, cwd=cwd, timeout=timeout)
            except asyncio.TimeoutError as e:
                raise StepFailure(f"installation.errors.{step_name}_timeout", "timeout", {"timeout": timeout}) from e
            except OSError as e:
                kind: ErrorKind = "tool_not_found" if isinstance(e, FileNotFoundError) else "command_failed"
                raise StepFailure(f"installation.errors.{step_name}_spawn_failed", kind, {"error": str(e)}) from e

            if result.returncode == 0:
                return

            stderr = decode_output(result.stderr)
            if attempt < self.settings.max_retries and is_transient_error(stderr):
                attempt += 1
                logger.warning(
                    f"{step_name} hit a transient error, retrying",
                    attempt=attempt,
                    max_retries=self.settings.max_retries,
                )
                await asyncio.sleep(self.settings.retry_delay)
                continue

            raise StepFailure(f"installation.errors.{step_name}_failed", "command_failed", {"error": stderr})

    async def _advance(self, run_id: str, step: InstallStep, progress: int) -> None:
        self._publish(run_id, step, progress)
        await self._pause()

    async def _pause(self) -> None:
        if self.settings.step_delay:
            await asyncio.sleep(self.settings.step_delay)

    def _publish(self, run_id: str, step: InstallStep, progress: int, is_complete: bool = False) -> None:
        message = self._text(f"installation.steps.{step}")
        logger.info(f"Installation step: {step}", run_id=run_id, progress=progress)
        self.tracker.update(step, progress, message, is_complete=is_complete, run_id=run_id)

    def _publish_error(self, run_id: str | None, message: str, error_kind: ErrorKind) -> None:
        self.tracker.update("error", 0, message, has_error=True, error_kind=error_kind, run_id=run_id)

