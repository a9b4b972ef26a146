"""Installation pipeline services."""

from .orchestrator import InstallationOrchestrator, StepFailure, is_transient_error
from .progress import ProgressTracker

__all__ = [
    "InstallationOrchestrator",
    "ProgressTracker",
    "StepFailure",
    "is_transient_error",
]
