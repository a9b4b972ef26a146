"""Utilities for the IndexTTS installer."""

from indextts_installer.utils.paths import get_resources_dir
from indextts_installer.utils.subprocess_executor import SubprocessExecutor

__all__ = ["SubprocessExecutor", "get_resources_dir"]
