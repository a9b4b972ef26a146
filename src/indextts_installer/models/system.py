"""Host capability models."""

from pydantic import BaseModel, ConfigDict

UNKNOWN = "Unknown"
UNKNOWN_GPU = "Unknown GPU"


class SystemInfo(BaseModel):
    """Snapshot of the host, created fresh for every query.

    Memory and disk figures are in bytes. Disk figures are summed over every
    mounted volume, so overlapping mounts are counted more than once.
    """

    model_config = ConfigDict(frozen=True)

    os: str = UNKNOWN
    os_version: str = UNKNOWN
    cpu_name: str = UNKNOWN
    cpu_cores: int = 0
    total_memory: int = 0
    available_memory: int = 0
    total_disk_space: int = 0
    available_disk_space: int = 0
    gpu_info: list[str] = [UNKNOWN_GPU]  # never empty
    python_version: str | None = None
    git_version: str | None = None
    cuda_available: bool = False
