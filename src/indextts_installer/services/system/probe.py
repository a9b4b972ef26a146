"""Host capability probe.

Every sub-probe is best-effort: a missing tool, an unreadable volume or a
timed-out command degrades that one field to its "unknown" value instead of
failing the whole query.
"""

import subprocess

import psutil

from indextts_installer.logger import get_logger
from indextts_installer.models.system import UNKNOWN, UNKNOWN_GPU, SystemInfo
from indextts_installer.services.platform import PlatformAdapter, get_platform_adapter
from indextts_installer.utils.subprocess_executor import SubprocessExecutor, decode_output

logger = get_logger(__name__)

CHIPSET_MODEL_PREFIX = "Chipset Model:"
CUDA_TOOL = "nvidia-smi"


def parse_gpu_models(output: str) -> list[str]:
    """Collect 'Chipset Model:' values from display-info output, in order."""
    models = []
    for line in output.splitlines():
        stripped = line.strip()
        if stripped.startswith(CHIPSET_MODEL_PREFIX):
            # Same as splitting on ':' and taking the second field
            name = stripped.split(":")[1].strip()
            models.append(name)
    return models


class SystemProbe:
    """Collects a SystemInfo snapshot of the current host."""

    def __init__(self, adapter: PlatformAdapter | None = None, command_timeout: float | None = 10) -> None:
        """
        Args:
            adapter: Platform adapter (defaults to the current platform's)
            command_timeout: Deadline in seconds for each probed command
        """
        self.adapter = adapter or get_platform_adapter()
        self.command_timeout = command_timeout

    def get_system_info(self) -> SystemInfo:
        """Probe the host and return a fresh snapshot."""
        cpu_name, cpu_cores = self._get_cpu_info()
        total_memory, available_memory = self._get_memory_info()
        total_disk_space, available_disk_space = self._get_disk_info()

        python_version = None
        for executable in self.adapter.python_executables():
            python_version = self.get_command_version(executable)
            if python_version:
                break

        info = SystemInfo(
            os=self.adapter.os_name() or UNKNOWN,
            os_version=self.adapter.os_version() or UNKNOWN,
            cpu_name=cpu_name,
            cpu_cores=cpu_cores,
            total_memory=total_memory,
            available_memory=available_memory,
            total_disk_space=total_disk_space,
            available_disk_space=available_disk_space,
            gpu_info=self.get_gpu_info(),
            python_version=python_version,
            git_version=self.get_command_version("git"),
            cuda_available=self.check_cuda_availability(),
        )
        logger.info(
            "System probe finished",
            os=info.os,
            cpu_cores=info.cpu_cores,
            gpus=info.gpu_info,
            cuda=info.cuda_available,
        )
        return info

    def _get_cpu_info(self) -> tuple[str, int]:
        # psutil reads live counters on every call, nothing is cached between queries
        cpu_cores = psutil.cpu_count(logical=True) or 0
        cpu_name = self.adapter.cpu_brand(self.command_timeout) if cpu_cores else None
        return cpu_name or UNKNOWN, cpu_cores

    def _get_memory_info(self) -> tuple[int, int]:
        try:
            mem = psutil.virtual_memory()
        except (OSError, RuntimeError) as e:
            logger.warning(f"Memory probe failed: {e}")
            return 0, 0
        return int(mem.total), int(mem.available)

    def _get_disk_info(self) -> tuple[int, int]:
        """Sum total/free bytes over all mounted volumes (no deduplication)."""
        total = 0
        available = 0
        try:
            partitions = psutil.disk_partitions(all=False)
        except OSError as e:
            logger.warning(f"Disk enumeration failed: {e}")
            return 0, 0

        for partition in partitions:
            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except OSError as e:
                # Includes PermissionError and removable drives without media
                logger.debug(f"Skipping mountpoint {partition.mountpoint}: {e}")
                continue
            total += usage.total
            available += usage.free
        return total, available

    def get_gpu_info(self) -> list[str]:
        """GPU model names in the order reported; ["Unknown GPU"] when none are found."""
        command = self.adapter.display_info_command()
        gpu_info: list[str] = []
        if command:
            try:
                result = SubprocessExecutor.run_sync(*command, timeout=self.command_timeout)
                gpu_info = parse_gpu_models(decode_output(result.stdout))
            except (OSError, subprocess.SubprocessError) as e:
                logger.debug(f"Display info probe failed: {e}")

        return gpu_info or [UNKNOWN_GPU]

    def get_command_version(self, command: str) -> str | None:
        """Trimmed stdout of `<command> --version`, or None if missing or silent."""
        try:
            result = SubprocessExecutor.run_sync(command, "--version", timeout=self.command_timeout)
        except (OSError, subprocess.SubprocessError):
            return None
        version = decode_output(result.stdout).strip()
        return version or None

    def check_cuda_availability(self) -> bool:
        """True iff the NVIDIA diagnostic tool starts and exits successfully."""
        try:
            result = SubprocessExecutor.run_sync(CUDA_TOOL, timeout=self.command_timeout)
        except (OSError, subprocess.SubprocessError):
            return False
        return result.returncode == 0
