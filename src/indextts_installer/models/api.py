"""API request/response models."""

from pydantic import BaseModel, Field


class GreetingResponse(BaseModel):
    message: str


class DefaultInstallPathResponse(BaseModel):
    path: str


class InstallPathRequest(BaseModel):
    """Request targeting an existing installation directory."""

    install_path: str = Field(min_length=1)


class MessageResponse(BaseModel):
    message: str


class StartInstallationResponse(BaseModel):
    """Acknowledgement of a scheduled run; progress records of this run carry the same run_id."""

    message: str
    run_id: str


class CancelInstallationResponse(BaseModel):
    cancelled: bool


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Body returned for application errors."""

    detail: str
    error_key: str
    retriable: bool = False
