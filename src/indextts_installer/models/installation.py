"""Installation request and progress models."""

from typing import Literal

from pydantic import BaseModel, Field

InstallStep = Literal[
    "idle",
    "preparing",
    "cloning",
    "cloned",
    "dependencies",
    "deps_installed",
    "models",
    "completed",
    "error",
]

ErrorKind = Literal["tool_not_found", "timeout", "command_failed", "filesystem", "cancelled"]

TERMINAL_STEPS: frozenset[str] = frozenset({"completed", "error"})


class InstallConfig(BaseModel):
    """Parameters of a single installation request."""

    install_path: str = Field(min_length=1)
    # Accepted and recorded with the run; the pipeline does not branch on them
    model_type: str = "base"
    use_gpu: bool = False


class InstallProgress(BaseModel):
    """Current state of the installation pipeline, as seen by a poll."""

    step: InstallStep = "idle"
    progress: int = Field(default=0, ge=0, le=100)
    message: str = ""
    is_complete: bool = False
    has_error: bool = False
    run_id: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def is_terminal(self) -> bool:
        return self.step in TERMINAL_STEPS
