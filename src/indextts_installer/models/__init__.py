"""Data models for the IndexTTS installer."""

from indextts_installer.models.config import AppConfig, InstallerConfig
from indextts_installer.models.installation import InstallConfig, InstallProgress
from indextts_installer.models.system import SystemInfo

__all__ = [
    "AppConfig",
    "InstallConfig",
    "InstallProgress",
    "InstallerConfig",
    "SystemInfo",
]
