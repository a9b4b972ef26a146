"""Platform abstraction."""

from .adapter import (
    LinuxAdapter,
    MacOSAdapter,
    PlatformAdapter,
    PlatformDetector,
    WindowsAdapter,
    get_platform_adapter,
)

__all__ = [
    "LinuxAdapter",
    "MacOSAdapter",
    "PlatformAdapter",
    "PlatformDetector",
    "WindowsAdapter",
    "get_platform_adapter",
]
