"""Post-install actions: launching the application and opening its folder."""

import shutil
from pathlib import Path

from indextts_installer.exceptions import OperationalError, ResourceNotFoundError
from indextts_installer.logger import get_logger
from indextts_installer.models.config import InstallerConfig
from indextts_installer.services.i18n import I18nService, get_i18n_service
from indextts_installer.services.platform import PlatformAdapter, get_platform_adapter
from indextts_installer.utils.subprocess_executor import SubprocessExecutor

logger = get_logger(__name__)


class AppLauncher:
    """Starts the installed application and opens the install directory.

    Spawned processes are detached; their lifecycle is not tracked.
    """

    def __init__(
        self,
        settings: InstallerConfig | None = None,
        adapter: PlatformAdapter | None = None,
        lang: str = "en",
        i18n: I18nService | None = None,
    ) -> None:
        self.settings = settings or InstallerConfig()
        self.adapter = adapter or get_platform_adapter()
        self.lang = lang
        self.i18n = i18n or get_i18n_service()

    def _python_executable(self) -> str:
        candidates = self.adapter.python_executables()
        for name in candidates:
            if shutil.which(name):
                return name
        # Let the spawn fail with a descriptive OSError
        return candidates[0]

    def launch(self, install_path: str) -> str:
        """
        Run the application's entry point with the working directory set to install_path.

        Raises:
            ResourceNotFoundError: install_path or the entry point is missing
            OperationalError: The interpreter could not be started
        """
        app_path = Path(install_path).expanduser()
        if not app_path.exists():
            raise ResourceNotFoundError("launch.path_missing", path=install_path)

        entry_point = app_path / self.settings.entry_point
        if not entry_point.exists():
            raise ResourceNotFoundError(
                "launch.entry_missing",
                app_name=self.settings.app_name,
                entry_point=self.settings.entry_point,
            )

        try:
            SubprocessExecutor.spawn_detached(self._python_executable(), self.settings.entry_point, cwd=app_path)
        except OSError as e:
            logger.error(f"Failed to launch {self.settings.app_name}: {e}")
            raise OperationalError("launch.spawn_failed", app_name=self.settings.app_name, error=str(e)) from e

        return self.i18n.translate("launch.launched", lang=self.lang, app_name=self.settings.app_name)

    def open_directory(self, install_path: str) -> None:
        """
        Open install_path in the desktop file manager.

        Raises:
            ResourceNotFoundError: install_path is missing
            OperationalError: The file manager could not be started
        """
        directory = Path(install_path).expanduser()
        if not directory.exists():
            raise ResourceNotFoundError("launch.directory_missing", path=install_path)

        try:
            SubprocessExecutor.spawn_detached(*self.adapter.file_manager_command(str(directory)))
        except OSError as e:
            logger.error(f"Failed to open directory {install_path}: {e}")
            raise OperationalError("launch.open_failed", error=str(e)) from e
