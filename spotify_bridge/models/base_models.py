"""Pydantic models for health and diagnostics responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str
    version: str


class DetailedHealthResponse(BaseModel):
    """Readiness response with dependency status."""

    status: str = Field(..., description="Overall health status: healthy or unhealthy")
    version: str = Field(..., description="Application version")
    timestamp: datetime = Field(..., description="Current server timestamp")
    checks: dict[str, str] = Field(..., description="Individual health check results")


class DebugInfo(BaseModel):
    """Debug information about bridge state."""

    system: dict[str, Any] = Field(..., description="System information")
    state: dict[str, Any] = Field(..., description="Bridge state")
    config: dict[str, Any] = Field(..., description="Configuration (sanitized)")
