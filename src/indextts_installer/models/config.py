"""Configuration data models for the IndexTTS installer."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ServerConfig(BaseModel):
    """HTTP listener for the desktop shell."""

    # Default port - must match the desktop shell's backend URL
    port: int = 8000
    host: str = "127.0.0.1"


class UIConfig(BaseModel):
    """Language of progress messages and error details."""

    preferred_language: Literal["en", "zh"] = "en"


class PathsConfig(BaseModel):
    """Where the installer keeps its own files (not where IndexTTS is installed)."""

    data_dir: Path = Field(default_factory=lambda: Path.home() / ".indextts-installer")
    logs_dir: Path | None = None

    @field_validator("data_dir", "logs_dir", mode="before")
    @classmethod
    def expand_home(cls, v: str | Path | None) -> Path | None:
        return Path(v).expanduser() if isinstance(v, str) else v

    def model_post_init(self, __context: object) -> None:
        # logs_dir defaults to a subdirectory of data_dir
        if self.logs_dir is None:
            self.logs_dir = self.data_dir / "logs"


class InstallerConfig(BaseModel):
    """What gets installed and how the pipeline is paced."""

    app_name: str = "IndexTTS"
    repo_url: str = "https://github.com/X-T-E-R/IndexTTS.git"
    requirements_file: str = "requirements.txt"
    pip_command: list[str] = Field(default_factory=lambda: ["pip"])
    entry_point: str = "main.py"
    checkpoints_dir: str = "checkpoints"

    # Pause after each published step so the polling GUI can render it
    step_delay: float = Field(default=1.0, ge=0)

    clone_timeout: float = 1800
    dependencies_timeout: float = 3600
    max_retries: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=3.0, ge=0)


class ProbeConfig(BaseModel):
    """Limits for the external tools the system probe runs."""

    command_timeout: float = 10


class AdvancedConfig(BaseModel):
    """Diagnostics."""

    log_level: Literal["INFO", "DEBUG", "TRACE"] = "INFO"


class AppConfig(BaseModel):
    """Everything config.yaml can set, one section per concern."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    installer: InstallerConfig = Field(default_factory=InstallerConfig)
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)
