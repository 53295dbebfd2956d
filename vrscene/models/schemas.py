"""Pydantic response models for the scene server."""

from typing import Optional

from pydantic import BaseModel

from vrscene.config import APP_VERSION


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str = APP_VERSION


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    error_code: Optional[str] = None
