"""
Platform abstraction layer for the OS-specific parts of probing and launching.

Provides a unified interface for:
- Display information command (GPU model lookup)
- CPU model string
- Python interpreter names
- File manager launcher
- Default installation directory

The installer and probe only talk to this interface, so the orchestration
logic itself stays platform-neutral.
"""

import os
import platform
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from indextts_installer.logger import get_logger
from indextts_installer.models.system import UNKNOWN
from indextts_installer.utils.subprocess_executor import SubprocessExecutor, decode_output

logger = get_logger(__name__)


class PlatformDetector:
    """Detect and identify current OS"""

    @staticmethod
    def get_platform() -> str:
        """Get platform: 'windows', 'darwin', or 'linux'"""
        return platform.system().lower()


class PlatformAdapter(ABC):
    """Abstract base for platform-specific commands and paths"""

    # Lower-cased platform.system() value the adapter serves
    name: str
    home_env_var: str = "HOME"

    @abstractmethod
    def display_info_command(self) -> list[str] | None:
        """Command whose output lists GPUs as 'Chipset Model:' lines, or None if unsupported."""

    @abstractmethod
    def file_manager_command(self, path: str) -> list[str]:
        """Command that opens a directory in the desktop file manager."""

    @abstractmethod
    def fallback_install_root(self) -> str:
        """Absolute directory used when the home directory variable is unset."""

    def python_executables(self) -> list[str]:
        """Interpreter names to try, in order."""
        return ["python3", "python"]

    def os_name(self) -> str:
        return platform.system() or UNKNOWN

    def os_version(self) -> str:
        return platform.release() or UNKNOWN

    def cpu_brand(self, timeout: float | None = None) -> str | None:
        """Model string of the first logical processor."""
        return platform.processor() or None

    def default_install_path(self, app_name: str) -> str:
        """${HOME}/Documents/<app_name>, or the fixed fallback when HOME is unset."""
        home = os.environ.get(self.home_env_var)
        if home:
            return str(Path(home) / "Documents" / app_name)
        logger.info(f"{self.home_env_var} is not set, using fallback install root")
        return str(Path(self.fallback_install_root()) / app_name)


class MacOSAdapter(PlatformAdapter):
    name = "darwin"

    def display_info_command(self) -> list[str] | None:
        return ["system_profiler", "SPDisplaysDataType"]

    def file_manager_command(self, path: str) -> list[str]:
        return ["open", path]

    def fallback_install_root(self) -> str:
        return "/Users/Shared"

    def os_version(self) -> str:
        # platform.release() is the Darwin kernel version; mac_ver() is the product version
        return platform.mac_ver()[0] or super().os_version()

    def cpu_brand(self, timeout: float | None = None) -> str | None:
        try:
            result = SubprocessExecutor.run_sync("sysctl", "-n", "machdep.cpu.brand_string", timeout=timeout)
        except (OSError, subprocess.SubprocessError):
            return super().cpu_brand(timeout)
        brand = decode_output(result.stdout).strip()
        return brand or super().cpu_brand(timeout)


class LinuxAdapter(PlatformAdapter):
    name = "linux"

    def display_info_command(self) -> list[str] | None:
        # No system_profiler equivalent with the same output shape
        return None

    def file_manager_command(self, path: str) -> list[str]:
        return ["xdg-open", path]

    def fallback_install_root(self) -> str:
        return "/opt"

    def os_name(self) -> str:
        try:
            release = platform.freedesktop_os_release()
        except OSError:
            return super().os_name()
        return release.get("NAME") or super().os_name()

    def os_version(self) -> str:
        try:
            release = platform.freedesktop_os_release()
        except OSError:
            return super().os_version()
        return release.get("VERSION_ID") or super().os_version()

    def cpu_brand(self, timeout: float | None = None) -> str | None:
        try:
            with open("/proc/cpuinfo", encoding="utf-8") as f:
                for line in f:
                    if line.startswith("model name"):
                        return line.split(":", 1)[1].strip()
        except OSError:
            pass
        return super().cpu_brand(timeout)


class WindowsAdapter(PlatformAdapter):
    name = "windows"
    home_env_var = "USERPROFILE"

    def display_info_command(self) -> list[str] | None:
        return None

    def file_manager_command(self, path: str) -> list[str]:
        return ["explorer", path]

    def fallback_install_root(self) -> str:
        return "C:\\Users\\Public"

    def python_executables(self) -> list[str]:
        return ["python", "py"]

    def os_version(self) -> str:
        return platform.version() or UNKNOWN


ADAPTERS: dict[str, type[PlatformAdapter]] = {
    adapter.name: adapter for adapter in (MacOSAdapter, LinuxAdapter, WindowsAdapter)
}


def get_platform_adapter(platform_name: str | None = None) -> PlatformAdapter:
    """Create the adapter for the given (or current) platform; unknown Unixes get the Linux one."""
    platform_name = platform_name or PlatformDetector.get_platform()
    return ADAPTERS.get(platform_name, LinuxAdapter)()
